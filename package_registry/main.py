import logging

from fastapi import Depends, FastAPI

from package_registry import __version__
from package_registry.core.dependencies import get_index
from package_registry.data.repository import get_load_failures, initialize_repository, shutdown_repository
from package_registry.domain.index import PackageIndex

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Package Registry",
    version=__version__,
    description="Read-only catalog of versioned integration packages.",
)


@app.on_event("startup")
async def startup_event() -> None:
    """
    Load the configuration, build the in-memory index and start the
    periodic rebuild task.
    """
    await initialize_repository()


@app.on_event("shutdown")
async def shutdown_event() -> None:
    await shutdown_repository()


@app.get("/health")
async def health(index: PackageIndex = Depends(get_index)) -> dict:
    """
    Lightweight health check endpoint.
    """
    return {"status": "ok", "packages": len(index), "failed_packages": len(get_load_failures())}


from package_registry.api.registry import router as registry_router  # noqa: E402

app.include_router(registry_router, tags=["registry"])


if __name__ == "__main__":
    """
    Allow running `python -m package_registry.main` to start the Uvicorn development server.
    """
    import uvicorn

    uvicorn.run(
        "package_registry.main:app",
        host="0.0.0.0",
        port=8080,
        reload=False,
    )
