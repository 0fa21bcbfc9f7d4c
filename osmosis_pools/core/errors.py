"""
Shared exception types for osmosis_pools.
Transport failures are retried by the ingestion loop; cache corruption is
absorbed at the store boundary; startup errors are fatal.
"""

from __future__ import annotations


class OsmosisPoolsError(Exception):
    """Base exception for osmosis_pools; catch this for any package-raised error."""

    pass


class TransportError(OsmosisPoolsError):
    """Non-2xx status, connection failure, or unparsable JSON body."""

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class MalformedResponseError(TransportError):
    """Response parsed but lacks the expected top-level field. Retried like TransportError."""


class CacheCorruptionError(OsmosisPoolsError):
    """A persisted JSON document could not be parsed."""


class StartupError(OsmosisPoolsError):
    """Data directory cannot be created or accessed."""


__all__ = [
    "CacheCorruptionError",
    "MalformedResponseError",
    "OsmosisPoolsError",
    "StartupError",
    "TransportError",
]
