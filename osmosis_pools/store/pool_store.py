"""
Pool corpus persistence: one JSON document `{"pools": [...], "skipped": [...]}`.

append() rewrites the whole document on every call (read-modify-write), so
cost grows with corpus size. That is accepted for a single ingester process;
two processes sharing one data directory are not supported.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..normalize import CanonicalPool
from .json_cache import read_json_or_default, write_json_atomic

logger = logging.getLogger(__name__)

POOLS_FILE_NAME = "pools.json"


@dataclass
class Corpus:
    pools: List[CanonicalPool] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)

    @property
    def last_id(self) -> Optional[int]:
        return self.pools[-1].id if self.pools else None

    def to_dict(self) -> Dict[str, Any]:
        return {"pools": [p.to_dict() for p in self.pools], "skipped": list(self.skipped)}


def resume_id(corpus: Corpus) -> int:
    """Next pool id to fetch: last persisted id + 1, or 1 for an empty corpus."""
    last = corpus.last_id
    return 1 if last is None else last + 1


class PoolStore:
    """File-backed corpus of canonical pools in strictly increasing id order."""

    def __init__(self, data_dir: Path, file_name: str = POOLS_FILE_NAME) -> None:
        self._path = Path(data_dir) / file_name

    @property
    def path(self) -> Path:
        return self._path

    def load(self, create_missing: bool = True) -> Corpus:
        """Read the corpus; missing or corrupt documents yield an empty corpus.

        With create_missing, an absent document is initialized on disk; read-only
        callers (queries) pass False.
        """
        raw = read_json_or_default(self._path, None)
        if raw is None:
            corpus = Corpus()
            if create_missing:
                write_json_atomic(self._path, corpus.to_dict())
            return corpus
        if not isinstance(raw, dict):
            logger.warning("%s is not a JSON object; starting from an empty corpus", self._path)
            return Corpus()

        pools: List[CanonicalPool] = []
        for item in self._list_field(raw, "pools"):
            try:
                pools.append(CanonicalPool.from_dict(item))
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                logger.warning("Dropping unreadable pool entry %r: %s", item, exc)
        skipped = [int(x) for x in self._list_field(raw, "skipped") if str(x).isdigit()]
        return Corpus(pools=pools, skipped=skipped)

    def _list_field(self, raw: Dict[str, Any], key: str) -> List[Any]:
        value = raw.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            logger.warning("%s: %r is not a list; treating it as empty", self._path, key)
            return []
        return value

    def append(self, pool: CanonicalPool) -> Corpus:
        """Persist one more pool; its id must exceed every stored id."""
        corpus = self.load()
        last = corpus.last_id
        if last is not None and pool.id <= last:
            raise ValueError(f"pool id {pool.id} is not greater than last stored id {last}")
        corpus.pools.append(pool)
        write_json_atomic(self._path, corpus.to_dict())
        return corpus

    def record_skipped(self, pool_id: int) -> None:
        """Remember an abandoned id so corpus gaps are visible."""
        corpus = self.load()
        if pool_id not in corpus.skipped:
            corpus.skipped.append(pool_id)
            write_json_atomic(self._path, corpus.to_dict())
