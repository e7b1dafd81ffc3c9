"""Exceptions raised by the synchronization components."""
from __future__ import annotations


class RegionaisError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(RegionaisError):
    """A required setting is missing or invalid."""


class FetchError(RegionaisError):
    """Retrieving the external snapshot failed (network, timeout, payload)."""


class SynchronizationError(RegionaisError):
    """A synchronization cycle failed; wraps the underlying cause."""

    def __init__(self, resource: str, message: str) -> None:
        super().__init__(f"Failed to synchronize {resource}: {message}")
        self.resource = resource


__all__ = ["RegionaisError", "ConfigurationError", "FetchError", "SynchronizationError"]
