"""
Single source for "now". Supports deterministic mode for tests via
OSMOSIS_POOLS_DETERMINISTIC_TIME (ISO format, e.g. 2026-01-01T00:00:00Z).
"""

from __future__ import annotations

import os
import time
from datetime import datetime, timezone


def _fixed_time() -> datetime | None:
    fixed = os.environ.get("OSMOSIS_POOLS_DETERMINISTIC_TIME", "").strip()
    if not fixed:
        return None
    dt = datetime.fromisoformat(fixed.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def now_epoch() -> float:
    """Current wall-clock time in epoch seconds; used for cache TTLs and blacklist expiry."""
    fixed = _fixed_time()
    if fixed is not None:
        return fixed.timestamp()
    return time.time()
