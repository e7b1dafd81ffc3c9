"""Top-level package for the regionais synchronization service.

Keeps a local replica of the external regionais list in sync without
ever deleting history.
"""
__all__ = ["api", "core", "pipeline", "repo"]
__version__ = "0.1.0"
