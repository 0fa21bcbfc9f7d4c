"""
Pool normalization: classify a raw poolmanager record by its `@type` tag and
extract one canonical shape (assets, liquidity, fees).

Classification order is fixed: concentrated liquidity, stableswap, cosmwasm,
gamm, unknown. Stableswap tags also contain "gamm", so the order matters.
Unrecognized tags degrade to an `unknown` pool with empty assets and fees;
they never raise.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple


class PoolType(enum.Enum):
    CONCENTRATED = "concentrated"
    STABLESWAP = "stableswap"
    COSMWASM = "cosmwasm"
    GAMM = "gamm"
    UNKNOWN = "unknown"


# (substring of @type, PoolType), tested in order.
TYPE_PRECEDENCE: Tuple[Tuple[str, PoolType], ...] = (
    ("concentratedliquidity", PoolType.CONCENTRATED),
    ("stableswap", PoolType.STABLESWAP),
    ("cosmwasmpool", PoolType.COSMWASM),
    ("gamm", PoolType.GAMM),
)


@dataclass(frozen=True)
class Fees:
    swap_fee: str = ""
    exit_fee: str = ""


@dataclass(frozen=True)
class CanonicalPool:
    """Immutable canonical pool record; `assets` is keyed by slot "1".."n"."""

    id: int
    address: str
    type: PoolType
    assets: Dict[str, str] = field(default_factory=dict)
    liquidity: Optional[Dict[str, Dict[str, str]]] = None
    fees: Fees = field(default_factory=Fees)

    def asset_denoms(self) -> List[str]:
        return list(self.assets.values())

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "address": self.address,
            "type": self.type.value,
            "assets": dict(self.assets),
            "fees": {"swap_fee": self.fees.swap_fee, "exit_fee": self.fees.exit_fee},
        }
        if self.liquidity is not None:
            out["liquidity"] = {k: dict(v) for k, v in self.liquidity.items()}
        return out

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CanonicalPool":
        try:
            pool_type = PoolType(d.get("type", "unknown"))
        except ValueError:
            pool_type = PoolType.UNKNOWN
        fees = d.get("fees") or {}
        liquidity = d.get("liquidity")
        return cls(
            id=int(d["id"]),
            address=str(d.get("address") or ""),
            type=pool_type,
            assets={str(k): str(v) for k, v in (d.get("assets") or {}).items()},
            liquidity={str(k): dict(v) for k, v in liquidity.items()} if isinstance(liquidity, dict) else None,
            fees=Fees(
                swap_fee=str(fees.get("swap_fee") or ""),
                exit_fee=str(fees.get("exit_fee") or ""),
            ),
        )


@dataclass(frozen=True)
class NormalizeResult:
    """Either a pool, or a retryable reason the payload could not be used."""

    pool: Optional[CanonicalPool] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.pool is not None


def classify(type_tag: str) -> PoolType:
    """Map an `@type` string to a PoolType using TYPE_PRECEDENCE."""
    tag = (type_tag or "").lower()
    for needle, pool_type in TYPE_PRECEDENCE:
        if needle in tag:
            return pool_type
    return PoolType.UNKNOWN


def _str(x: Any) -> str:
    return "" if x is None else str(x)


def _slots(denoms: List[str]) -> Dict[str, str]:
    return {str(i): d for i, d in enumerate(denoms, start=1) if d}


def _coin_denom(item: Any) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        return _str(item.get("denom"))
    return ""


def _pool_params_fees(raw: Dict[str, Any]) -> Fees:
    params = raw.get("pool_params") if isinstance(raw.get("pool_params"), dict) else {}
    return Fees(swap_fee=_str(params.get("swap_fee")), exit_fee=_str(params.get("exit_fee")))


def _extract_concentrated(raw: Dict[str, Any]) -> Tuple[Dict[str, str], Fees, List[Dict[str, Any]]]:
    assets = _slots([_str(raw.get("token0")), _str(raw.get("token1"))])
    return assets, Fees(swap_fee=_str(raw.get("spread_factor"))), []


def _extract_stableswap(raw: Dict[str, Any]) -> Tuple[Dict[str, str], Fees, List[Dict[str, Any]]]:
    coins = [c for c in raw.get("pool_liquidity") or [] if isinstance(c, dict)]
    return _slots([_coin_denom(c) for c in coins]), _pool_params_fees(raw), coins


def _extract_cosmwasm(raw: Dict[str, Any]) -> Tuple[Dict[str, str], Fees, List[Dict[str, Any]]]:
    tokens = raw.get("tokens")
    denoms = [_coin_denom(t) for t in tokens] if isinstance(tokens, list) else []
    return _slots(denoms), Fees(), []


def _extract_gamm(raw: Dict[str, Any]) -> Tuple[Dict[str, str], Fees, List[Dict[str, Any]]]:
    coins: List[Dict[str, Any]] = []
    for asset in raw.get("pool_assets") or []:
        token = asset.get("token") if isinstance(asset, dict) else None
        if isinstance(token, dict):
            coins.append(token)
    return _slots([_coin_denom(c) for c in coins]), _pool_params_fees(raw), coins


def _extract_unknown(raw: Dict[str, Any]) -> Tuple[Dict[str, str], Fees, List[Dict[str, Any]]]:
    return {}, Fees(), []


_EXTRACTORS: Dict[PoolType, Callable[[Dict[str, Any]], Tuple[Dict[str, str], Fees, List[Dict[str, Any]]]]] = {
    PoolType.CONCENTRATED: _extract_concentrated,
    PoolType.STABLESWAP: _extract_stableswap,
    PoolType.COSMWASM: _extract_cosmwasm,
    PoolType.GAMM: _extract_gamm,
    PoolType.UNKNOWN: _extract_unknown,
}


def _map_liquidity(assets: Dict[str, str], coins: List[Dict[str, Any]]) -> Optional[Dict[str, Dict[str, str]]]:
    """Attach amounts to slots by denom; unmatched slots are omitted."""
    by_denom = {_coin_denom(c): _str(c.get("amount")) for c in coins if _coin_denom(c)}
    out = {
        slot: {"denom": denom, "amount": by_denom[denom]}
        for slot, denom in assets.items()
        if denom in by_denom
    }
    return out or None


def _parse_id(raw: Dict[str, Any], fallback: int) -> int:
    value = raw.get("id") if raw.get("id") not in (None, "") else raw.get("pool_id")
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def normalize_pool(
    raw: Dict[str, Any],
    requested_id: int = 0,
    liquidity: Optional[List[Dict[str, Any]]] = None,
) -> CanonicalPool:
    """
    Build a CanonicalPool from the inner `pool` object.

    `liquidity` is the separately fetched total-pool-liquidity coin list; when
    absent, amounts embedded in gamm/stableswap payloads are used. A cosmwasm
    pool without a token list takes its assets from the liquidity order.
    """
    pool_type = classify(_str(raw.get("@type")))
    assets, fees, embedded = _EXTRACTORS[pool_type](raw)

    coins = liquidity if liquidity is not None else embedded
    if pool_type is PoolType.COSMWASM and not assets and coins:
        assets = _slots([_coin_denom(c) for c in coins])

    return CanonicalPool(
        id=_parse_id(raw, requested_id),
        address=_str(raw.get("address") or raw.get("contract_address")),
        type=pool_type,
        assets=assets,
        liquidity=_map_liquidity(assets, coins) if coins else None,
        fees=fees,
    )


def normalize_response(
    payload: Any,
    requested_id: int = 0,
    liquidity: Optional[List[Dict[str, Any]]] = None,
) -> NormalizeResult:
    """Normalize a full `{"pool": {...}}` response; a missing envelope is a retryable error."""
    if not isinstance(payload, dict) or not isinstance(payload.get("pool"), dict):
        return NormalizeResult(error="response missing 'pool'")
    return NormalizeResult(pool=normalize_pool(payload["pool"], requested_id, liquidity))
