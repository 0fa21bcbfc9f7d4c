"""
JSON document persistence shared by the pool corpus and the denom/price/asset caches.

Writes go to a sibling temp file and are moved into place, so a crash never
leaves a half-written document. Unparsable documents raise
CacheCorruptionError; callers decide how to recover.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from ..core.errors import CacheCorruptionError, StartupError

logger = logging.getLogger(__name__)


def ensure_data_dir(path: Path) -> Path:
    """Create the data directory if needed; raise StartupError if it is unusable."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StartupError(f"Cannot create data directory {path}: {exc}") from exc
    if not os.access(path, os.R_OK | os.W_OK):
        raise StartupError(f"Data directory {path} is not readable and writable")
    return path


def read_json(path: Path) -> Optional[Any]:
    """Return the parsed document, or None if the file does not exist."""
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise CacheCorruptionError(f"{path}: {exc}") from exc


def read_json_or_default(path: Path, default: Any) -> Any:
    """Like read_json, but missing or corrupt documents yield `default`.

    A corrupt file is kept alongside as `<name>.corrupt` for inspection.
    """
    try:
        data = read_json(path)
    except CacheCorruptionError as exc:
        logger.warning("Corrupt JSON document, resetting: %s", exc)
        _quarantine(path)
        return default
    return default if data is None else data


def write_json_atomic(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def _quarantine(path: Path) -> None:
    try:
        os.replace(path, path.with_name(path.name + ".corrupt"))
    except OSError as exc:
        logger.warning("Could not quarantine %s: %s", path, exc)
