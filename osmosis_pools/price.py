"""
USD enrichment: chain-registry asset list -> CoinGecko id and decimals,
CoinGecko batch prices with a short-lived file cache.

Two caches under the data directory:
- assetlist.json `{timestamp, data}`: refreshed after `assetlist_ttl_s` (24h).
- prices.json `{timestamp, prices, fetched_at}`: an id is refetched after `ttl_s` (5 min).
A missing mapping or price yields None ("unavailable"), never zero.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

from .core.errors import TransportError
from .core.timeutils import now_epoch
from .providers.base import MarketDataSource
from .store.json_cache import read_json_or_default, write_json_atomic

logger = logging.getLogger(__name__)

ASSETLIST_FILE_NAME = "assetlist.json"
PRICES_FILE_NAME = "prices.json"
DEFAULT_DECIMALS = 6
PRICE_TTL_S = 5 * 60.0
ASSETLIST_TTL_S = 24 * 60 * 60.0


def format_usd(value: Optional[float]) -> str:
    """`<$0.01`, `$X.XX`, `$X.XXK`, `$X.XXM`; lower band bounds are inclusive."""
    if value is None:
        return "N/A"
    if value < 0.01:
        return "<$0.01"
    # Band on the rounded value: 999.999 -> $1.00K.
    cents = f"{value:.2f}"
    if float(cents) < 1000:
        return f"${cents}"
    thousands = f"{value / 1000:.2f}"
    if float(thousands) < 1000:
        return f"${thousands}K"
    return f"${value / 1_000_000:.2f}M"


def _timestamp(value: Any) -> float:
    """Cached epoch seconds; anything unreadable counts as 0 (stale)."""
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _display_decimals(asset: Dict[str, Any]) -> int:
    display = asset.get("display")
    for unit in asset.get("denom_units") or []:
        if isinstance(unit, dict) and unit.get("denom") == display and unit.get("exponent"):
            return int(unit["exponent"])
    return DEFAULT_DECIMALS


class PriceEnricher:
    """Denom -> CoinGecko id -> USD price, with TTL-bounded file caches."""

    def __init__(
        self,
        data_dir: Path,
        source: MarketDataSource,
        ttl_s: float = PRICE_TTL_S,
        assetlist_ttl_s: float = ASSETLIST_TTL_S,
        clock: Callable[[], float] = now_epoch,
    ) -> None:
        self._assetlist_path = Path(data_dir) / ASSETLIST_FILE_NAME
        self._prices_path = Path(data_dir) / PRICES_FILE_NAME
        self._source = source
        self._ttl_s = ttl_s
        self._assetlist_ttl_s = assetlist_ttl_s
        self._clock = clock
        self._denom_to_gecko: Optional[Dict[str, str]] = None
        self._gecko_decimals: Dict[str, int] = {}

    # Asset list

    def _load_asset_list(self) -> Dict[str, Any]:
        cached = read_json_or_default(self._assetlist_path, {})
        stale: Optional[Dict[str, Any]] = None
        if isinstance(cached, dict) and isinstance(cached.get("data"), dict):
            stale = cached["data"]
            if self._clock() - _timestamp(cached.get("timestamp")) < self._assetlist_ttl_s:
                return stale

        logger.info("Fetching asset list from chain registry")
        try:
            data = self._source.get_asset_list()
        except TransportError as exc:
            if stale is not None:
                logger.warning("Asset list refresh failed, using stale snapshot: %s", exc)
                return stale
            logger.warning("Asset list unavailable; USD values disabled: %s", exc)
            return {}
        write_json_atomic(self._assetlist_path, {"timestamp": self._clock(), "data": data})
        return data

    def _build_denom_map(self) -> Dict[str, str]:
        if self._denom_to_gecko is not None:
            return self._denom_to_gecko
        mapping: Dict[str, str] = {}
        for asset in self._load_asset_list().get("assets") or []:
            if not isinstance(asset, dict):
                continue
            gecko_id = asset.get("coingecko_id")
            if not gecko_id:
                continue
            if asset.get("base"):
                mapping[str(asset["base"]).lower()] = gecko_id
            self._gecko_decimals[gecko_id] = _display_decimals(asset)
        self._denom_to_gecko = mapping
        return mapping

    def gecko_id_for(self, denom: str) -> Optional[str]:
        return self._build_denom_map().get(denom.lower())

    def decimals_for(self, gecko_id: str) -> int:
        self._build_denom_map()
        return self._gecko_decimals.get(gecko_id, DEFAULT_DECIMALS)

    # Prices

    def _load_price_cache(self) -> Dict[str, Any]:
        cache = read_json_or_default(self._prices_path, {})
        if not isinstance(cache, dict):
            cache = {}
        cache.setdefault("timestamp", 0)
        prices = cache.get("prices") if isinstance(cache.get("prices"), dict) else {}
        cache["prices"] = {gid: usd for gid, usd in prices.items() if isinstance(usd, (int, float))}
        if not isinstance(cache.get("fetched_at"), dict):
            cache["fetched_at"] = {}
        return cache

    def fetch_prices(self, gecko_ids: Iterable[str]) -> Dict[str, float]:
        """Return cached prices, refreshing stale or missing ids in one batch query."""
        cache = self._load_price_cache()
        now = self._clock()
        prices: Dict[str, float] = cache["prices"]
        fetched_at: Dict[str, float] = cache["fetched_at"]

        def _fresh(gid: str) -> bool:
            ts = _timestamp(fetched_at.get(gid, cache["timestamp"]))
            return gid in prices and now - ts <= self._ttl_s

        needs_fetch = [gid for gid in dict.fromkeys(gecko_ids) if gid and not _fresh(gid)]
        if needs_fetch:
            try:
                fetched = self._source.get_usd_prices(needs_fetch)
            except TransportError as exc:
                logger.warning("Price fetch error: %s", exc)
            else:
                for gid, usd in fetched.items():
                    prices[gid] = usd
                    fetched_at[gid] = now
                cache["timestamp"] = now
                write_json_atomic(self._prices_path, cache)
        return dict(prices)

    def price_for(self, denom: str) -> Optional[float]:
        gecko_id = self.gecko_id_for(denom)
        if not gecko_id:
            return None
        return self.fetch_prices([gecko_id]).get(gecko_id) or None

    def usd_value(self, denom: str, raw_amount: Any) -> Optional[float]:
        """raw_amount / 10**decimals * price, or None when no price mapping exists."""
        price = self.price_for(denom)
        if price is None:
            return None
        try:
            amount = int(str(raw_amount))
        except (TypeError, ValueError):
            return None
        return amount / 10 ** self.decimals_for(self.gecko_id_for(denom)) * price
