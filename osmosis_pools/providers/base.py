"""
Provider interfaces and data contracts.

Upstream sources implement one of these protocols:
- PoolSource: LCD/REST nodes answering pool-by-id and pool-liquidity-by-id.
- DenomTraceSource: nodes answering IBC denom-trace-by-hash.
- MarketDataSource: chain-registry asset list and CoinGecko batch prices.

Per-endpoint health is a small mutable dataclass owned by the EndpointRegistry.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


class EndpointStatus(enum.Enum):
    """Health status of an upstream endpoint."""

    OK = "OK"
    DEGRADED = "DEGRADED"
    BLACKLISTED = "BLACKLISTED"


@dataclass
class Endpoint:
    """Mutable health state for one upstream address."""

    address: str
    consecutive_failures: int = 0
    blacklisted_until: Optional[float] = None
    last_error: Optional[str] = None

    def is_blacklisted(self, now: float) -> bool:
        return self.blacklisted_until is not None and self.blacklisted_until > now

    def status(self, now: float) -> EndpointStatus:
        if self.is_blacklisted(now):
            return EndpointStatus.BLACKLISTED
        if self.consecutive_failures > 0:
            return EndpointStatus.DEGRADED
        return EndpointStatus.OK


@runtime_checkable
class PoolSource(Protocol):
    """Protocol for pool record sources addressed by endpoint."""

    def get_pool(self, address: str, pool_id: int) -> Dict[str, Any]:
        """Fetch the raw `{"pool": {...}}` payload for a pool id."""
        ...

    def get_pool_liquidity(self, address: str, pool_id: int) -> List[Dict[str, Any]]:
        """Fetch the pool's total liquidity as a list of `{denom, amount}` coins."""
        ...


@runtime_checkable
class DenomTraceSource(Protocol):
    """Protocol for IBC denom trace lookups."""

    def get_denom_trace(self, address: str, ibc_hash: str) -> Dict[str, Any]:
        """Return the raw `denom_trace` object (`path`, `base_denom`)."""
        ...


@runtime_checkable
class MarketDataSource(Protocol):
    """Protocol for asset-list and price lookups."""

    def get_asset_list(self) -> Dict[str, Any]:
        """Return the chain-registry asset list document."""
        ...

    def get_usd_prices(self, gecko_ids: List[str]) -> Dict[str, float]:
        """Return `{gecko_id: usd}` for the ids the market source knows."""
        ...
