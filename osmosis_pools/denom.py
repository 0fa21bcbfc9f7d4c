"""
IBC denom resolution: `ibc/<HASH>` -> base denom and transfer path.

Traces are immutable once anchored on-chain, so successful lookups are
cached on disk forever. Failed lookups are never written to disk; a resolver
remembers them only for its own lifetime, so the next process retries.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .core.errors import TransportError
from .providers.base import DenomTraceSource
from .store.json_cache import read_json_or_default, write_json_atomic

logger = logging.getLogger(__name__)

DENOMS_FILE_NAME = "denoms.json"
IBC_PREFIX = "ibc/"


@dataclass(frozen=True)
class DenomTrace:
    base_denom: str
    path: str


@dataclass(frozen=True)
class DecodedDenom:
    denom: str
    is_ibc: bool
    base_denom: Optional[str] = None
    path: Optional[str] = None


def is_ibc_denom(denom: str) -> bool:
    return denom.lower().startswith(IBC_PREFIX)


def ibc_hash(denom: str) -> str:
    """Strip an `ibc/` prefix if present; the bare hash passes through."""
    return denom[len(IBC_PREFIX):] if is_ibc_denom(denom) else denom


def parse_ibc_path(path: Optional[str]) -> List[str]:
    """Channels from a trace path, e.g. "transfer/channel-0/transfer/channel-3" -> ["channel-0", "channel-3"]."""
    if not path:
        return []
    parts = path.split("/")
    channels = []
    for i in range(0, len(parts) - 1, 2):
        if parts[i] == "transfer" and parts[i + 1]:
            channels.append(parts[i + 1])
    return channels


def format_display(decoded: DecodedDenom) -> str:
    """Human-readable denom: `base (channel)`, `base (ch-a -> ch-b)`, or the base alone."""
    if not decoded.is_ibc or not decoded.base_denom:
        return decoded.denom
    channels = parse_ibc_path(decoded.path)
    if channels:
        return f"{decoded.base_denom} ({' -> '.join(channels)})"
    return decoded.base_denom


class DenomResolver:
    """Resolve IBC hashes through an ordered list of trace endpoints, with a permanent file cache."""

    def __init__(
        self,
        data_dir: Path,
        source: DenomTraceSource,
        endpoints: Sequence[str],
        file_name: str = DENOMS_FILE_NAME,
    ) -> None:
        self._path = Path(data_dir) / file_name
        self._source = source
        self._endpoints = list(endpoints)
        self._cache: Optional[Dict[str, Dict[str, str]]] = None
        self._misses: Set[str] = set()

    def _load_cache(self) -> Dict[str, Dict[str, str]]:
        if self._cache is None:
            raw = read_json_or_default(self._path, {})
            self._cache = raw if isinstance(raw, dict) else {}
        return self._cache

    def cached(self, hash_or_denom: str) -> Optional[DenomTrace]:
        entry = self._load_cache().get(ibc_hash(hash_or_denom))
        if not isinstance(entry, dict) or not entry.get("base_denom"):
            return None
        return DenomTrace(base_denom=entry["base_denom"], path=entry.get("path") or "")

    def resolve(self, hash_or_denom: str) -> Optional[DenomTrace]:
        """Cached trace, else the first endpoint that answers; None if none do."""
        hit = self.cached(hash_or_denom)
        if hit is not None:
            return hit

        h = ibc_hash(hash_or_denom)
        if h in self._misses:
            return None
        for endpoint in self._endpoints:
            try:
                raw = self._source.get_denom_trace(endpoint, h)
            except TransportError as exc:
                logger.debug("denom trace %s via %s failed: %s", h, endpoint, exc)
                continue
            base = raw.get("base_denom")
            if not base:
                continue
            trace = DenomTrace(base_denom=str(base), path=str(raw.get("path") or ""))
            cache = self._load_cache()
            cache[h] = {"base_denom": trace.base_denom, "path": trace.path}
            write_json_atomic(self._path, cache)
            return trace

        logger.info("Could not resolve denom trace for %s", h)
        self._misses.add(h)
        return None

    def decode(self, denom: str) -> DecodedDenom:
        if not is_ibc_denom(denom):
            return DecodedDenom(denom=denom, is_ibc=False)
        trace = self.resolve(denom)
        if trace is None:
            return DecodedDenom(denom=denom, is_ibc=True)
        return DecodedDenom(denom=denom, is_ibc=True, base_denom=trace.base_denom, path=trace.path)

    def decode_many(self, denoms: Iterable[str]) -> Dict[str, DecodedDenom]:
        return {d: self.decode(d) for d in dict.fromkeys(denoms)}
