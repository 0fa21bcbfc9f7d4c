"""Persistence: pool corpus document and JSON cache helpers."""

from __future__ import annotations

from .json_cache import ensure_data_dir, read_json, read_json_or_default, write_json_atomic
from .pool_store import Corpus, PoolStore, resume_id

__all__ = [
    "Corpus",
    "PoolStore",
    "ensure_data_dir",
    "read_json",
    "read_json_or_default",
    "resume_id",
    "write_json_atomic",
]
