"""
Configuration loading and the live catalog snapshot.

This package is responsible for:
* Locating and parsing the registry configuration file.
* Building the in-memory package index through a manifest loader.
* Swapping in a freshly built index on a fixed interval.
"""
