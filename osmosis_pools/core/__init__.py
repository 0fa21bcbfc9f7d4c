"""
Stable facade: error types and time helpers only.
Do not add exports without updating __all__.
"""

from __future__ import annotations

from .errors import (
    CacheCorruptionError,
    MalformedResponseError,
    OsmosisPoolsError,
    StartupError,
    TransportError,
)
from .timeutils import now_epoch

# Do not add exports without updating __all__.
__all__ = [
    "CacheCorruptionError",
    "MalformedResponseError",
    "OsmosisPoolsError",
    "StartupError",
    "TransportError",
    "now_epoch",
]
