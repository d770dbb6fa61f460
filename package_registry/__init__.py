"""
Read-only catalog service for versioned integration packages.
"""

__version__ = "0.1.0"
