"""
Read-only queries over the pool corpus: asset filters, id lookup, base-denom
search through IBC decoding, and USD decoration.

All string matching is case-insensitive. CLI and notebooks should use this
module instead of reading pools.json directly.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import pandas as pd

from .denom import DenomResolver, format_display, is_ibc_denom
from .normalize import CanonicalPool
from .price import PriceEnricher, format_usd
from .store.pool_store import PoolStore

logger = logging.getLogger(__name__)


def _has_asset(pool: CanonicalPool, term: str, exact: bool = False) -> bool:
    t = term.lower()
    for denom in pool.asset_denoms():
        d = denom.lower()
        if (d == t) if exact else (t in d):
            return True
    return False


def amount_decimals(denom: Optional[str]) -> int:
    """6 for micro-unit denoms (`uosmo`, `factory/.../uxyz`), 18 for wei/ETH-style, else 6."""
    d = denom or ""
    if d.startswith("u") or "/u" in d:
        return 6
    if "wei" in d or "ETH" in d:
        return 18
    return 6


def format_amount(amount: Optional[str], denom: Optional[str]) -> str:
    """Whole units with K/M suffixes above one thousand / one million."""
    try:
        num = int(amount or "0")
    except ValueError:
        return "?"
    whole = num // 10 ** amount_decimals(denom)
    if whole > 1_000_000:
        return f"{whole / 1_000_000:.2f}M"
    if whole > 1000:
        return f"{whole / 1000:.2f}K"
    return str(whole)


def _swap_fee_line(pool: CanonicalPool) -> Optional[str]:
    if not pool.fees.swap_fee:
        return None
    try:
        return f"  Swap Fee: {float(pool.fees.swap_fee) * 100:.2f}%"
    except ValueError:
        return None


@dataclass(frozen=True)
class DecoratedAsset:
    slot: str
    denom: str
    display: str
    amount: Optional[str] = None
    amount_display: Optional[str] = None
    usd: Optional[float] = None


@dataclass(frozen=True)
class DecoratedPool:
    pool: CanonicalPool
    assets: List[DecoratedAsset]
    tvl: Optional[float] = None


class QueryEngine:
    """
    Queries over a loaded corpus.

    Usage:
        engine = QueryEngine.from_store(store, resolver=resolver, prices=enricher)
        for pool in engine.find_by_asset("uosmo"): ...
    """

    def __init__(
        self,
        pools: Sequence[CanonicalPool],
        resolver: Optional[DenomResolver] = None,
        prices: Optional[PriceEnricher] = None,
    ) -> None:
        self._pools = list(pools)
        self._resolver = resolver
        self._prices = prices

    @classmethod
    def from_store(
        cls,
        store: PoolStore,
        resolver: Optional[DenomResolver] = None,
        prices: Optional[PriceEnricher] = None,
    ) -> "QueryEngine":
        return cls(store.load(create_missing=False).pools, resolver=resolver, prices=prices)

    @property
    def pools(self) -> List[CanonicalPool]:
        return list(self._pools)

    def find_by_asset(self, term: str, exact: bool = False) -> List[CanonicalPool]:
        return [p for p in self._pools if _has_asset(p, term, exact)]

    def find_by_all_assets(self, terms: Sequence[str], exact: bool = False) -> List[CanonicalPool]:
        return [p for p in self._pools if all(_has_asset(p, t, exact) for t in terms)]

    def find_by_any_asset(self, terms: Sequence[str], exact: bool = False) -> List[CanonicalPool]:
        return [p for p in self._pools if any(_has_asset(p, t, exact) for t in terms)]

    def get_by_id(self, pool_id: int | str) -> Optional[CanonicalPool]:
        try:
            wanted = int(pool_id)
        except (TypeError, ValueError):
            return None
        for p in self._pools:
            if p.id == wanted:
                return p
        return None

    def search_by_base_denom(self, term: str) -> List[CanonicalPool]:
        """Pools with a raw denom containing `term`, or an IBC denom whose base denom does."""
        t = term.lower()
        results = []
        for pool in self._pools:
            for denom in pool.asset_denoms():
                if t in denom.lower():
                    results.append(pool)
                    break
                if self._resolver is not None and is_ibc_denom(denom):
                    decoded = self._resolver.decode(denom)
                    if decoded.base_denom and t in decoded.base_denom.lower():
                        results.append(pool)
                        break
        return results

    def decorate(self, pool: CanonicalPool) -> DecoratedPool:
        """Per-slot display names, scaled amounts and USD values; TVL over priced slots."""
        decorated: List[DecoratedAsset] = []
        tvl: Optional[float] = None
        decoded = self._resolver.decode_many(pool.asset_denoms()) if self._resolver is not None else {}
        for slot, denom in pool.assets.items():
            display = format_display(decoded[denom]) if denom in decoded else denom
            liq = (pool.liquidity or {}).get(slot)
            amount = liq.get("amount") if liq else None
            usd = None
            if amount is not None and self._prices is not None:
                usd = self._prices.usd_value(denom, amount)
                if usd is not None:
                    tvl = (tvl or 0.0) + usd
            decorated.append(DecoratedAsset(
                slot=slot,
                denom=denom,
                display=display,
                amount=amount,
                amount_display=format_amount(amount, denom) if amount is not None else None,
                usd=usd,
            ))
        return DecoratedPool(pool=pool, assets=decorated, tvl=tvl)


def format_pool(pool: CanonicalPool) -> str:
    lines = [
        f"Pool #{pool.id} ({pool.type.value})",
        f"  Address: {pool.address}",
        "  Assets:",
    ]
    for slot, denom in pool.assets.items():
        liq = (pool.liquidity or {}).get(slot)
        liq_str = f" [{format_amount(liq.get('amount'), denom)}]" if liq else ""
        lines.append(f"    {slot}: {denom}{liq_str}")
    fee = _swap_fee_line(pool)
    if fee:
        lines.append(fee)
    return "\n".join(lines)


def format_decorated(decorated: DecoratedPool) -> str:
    pool = decorated.pool
    lines = [
        f"Pool #{pool.id} ({pool.type.value})",
        f"  Address: {pool.address}",
        "  Assets:",
    ]
    for asset in decorated.assets:
        liq_str = f" [{asset.amount_display}]" if asset.amount_display is not None else ""
        usd_str = f" ({format_usd(asset.usd)})" if asset.usd is not None else ""
        lines.append(f"    {asset.slot}: {asset.display}{liq_str}{usd_str}")
    fee = _swap_fee_line(pool)
    if fee:
        lines.append(fee)
    if decorated.tvl is not None:
        lines.append(f"  TVL: {format_usd(decorated.tvl)}")
    return "\n".join(lines)


def pools_frame(pools: Sequence[CanonicalPool]) -> pd.DataFrame:
    """Tabular view: id, type, address, n_assets, assets, swap_fee, exit_fee."""
    rows = [
        {
            "id": p.id,
            "type": p.type.value,
            "address": p.address,
            "n_assets": len(p.assets),
            "assets": ", ".join(p.asset_denoms()),
            "swap_fee": p.fees.swap_fee,
            "exit_fee": p.fees.exit_fee,
        }
        for p in pools
    ]
    return pd.DataFrame(rows, columns=["id", "type", "address", "n_assets", "assets", "swap_fee", "exit_fee"])


def type_counts(pools: Sequence[CanonicalPool]) -> pd.Series:
    """Pool count per canonical type, largest first."""
    return pools_frame(pools)["type"].value_counts()
