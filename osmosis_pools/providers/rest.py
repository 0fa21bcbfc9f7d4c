"""
Osmosis LCD / chain-registry / CoinGecko HTTP client.

Uses public endpoints (no authentication required):
  GET {lcd}/osmosis/poolmanager/v1beta1/pools/{id}
  GET {lcd}/osmosis/poolmanager/v1beta1/pools/{id}/total_pool_liquidity
  GET {lcd}/ibc/apps/transfer/v1/denom_traces/{hash}
  GET https://raw.githubusercontent.com/cosmos/chain-registry/master/osmosis/assetlist.json
  GET https://api.coingecko.com/api/v3/simple/price?ids=...&vs_currencies=usd

Every failure mode (connection error, non-2xx, unparsable body) surfaces as
TransportError; a parsed body missing its expected field surfaces as
MalformedResponseError.
"""
from __future__ import annotations

from typing import Any, Dict, List

import requests

from ..core.errors import MalformedResponseError, TransportError

HTTP_TIMEOUT_S = 15.0
ASSETLIST_URL = "https://raw.githubusercontent.com/cosmos/chain-registry/master/osmosis/assetlist.json"
COINGECKO_PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"


def pool_path(pool_id: int) -> str:
    return f"/osmosis/poolmanager/v1beta1/pools/{pool_id}"


class OsmosisRestClient:
    """Thin JSON-over-HTTP client implementing PoolSource, DenomTraceSource and MarketDataSource."""

    def __init__(
        self,
        timeout_s: float = HTTP_TIMEOUT_S,
        assetlist_url: str = ASSETLIST_URL,
        coingecko_url: str = COINGECKO_PRICE_URL,
        session: requests.Session | None = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._assetlist_url = assetlist_url
        self._coingecko_url = coingecko_url
        self._session = session

    def _get_json(self, url: str, params: Dict[str, str] | None = None) -> Any:
        getter = self._session.get if self._session is not None else requests.get
        try:
            resp = getter(url, params=params, timeout=self._timeout_s)
        except requests.RequestException as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}", url=url) from exc
        if resp.status_code == 429:
            raise TransportError("rate limit (HTTP 429)", url=url, status_code=429)
        if not 200 <= resp.status_code < 300:
            raise TransportError(f"HTTP {resp.status_code}", url=url, status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError(f"invalid JSON body: {exc}", url=url, status_code=resp.status_code) from exc

    # PoolSource

    def get_pool(self, address: str, pool_id: int) -> Dict[str, Any]:
        url = f"{address}{pool_path(pool_id)}"
        data = self._get_json(url)
        if not isinstance(data, dict) or not isinstance(data.get("pool"), dict):
            raise MalformedResponseError("response missing 'pool'", url=url)
        return data

    def get_pool_liquidity(self, address: str, pool_id: int) -> List[Dict[str, Any]]:
        url = f"{address}{pool_path(pool_id)}/total_pool_liquidity"
        data = self._get_json(url)
        coins = data.get("liquidity") if isinstance(data, dict) else None
        if not isinstance(coins, list):
            raise MalformedResponseError("response missing 'liquidity'", url=url)
        return [c for c in coins if isinstance(c, dict)]

    # DenomTraceSource

    def get_denom_trace(self, address: str, ibc_hash: str) -> Dict[str, Any]:
        url = f"{address}/ibc/apps/transfer/v1/denom_traces/{ibc_hash}"
        data = self._get_json(url)
        trace = data.get("denom_trace") if isinstance(data, dict) else None
        if not isinstance(trace, dict):
            raise MalformedResponseError("response missing 'denom_trace'", url=url)
        return trace

    # MarketDataSource

    def get_asset_list(self) -> Dict[str, Any]:
        data = self._get_json(self._assetlist_url)
        if not isinstance(data, dict) or not isinstance(data.get("assets"), list):
            raise MalformedResponseError("asset list missing 'assets'", url=self._assetlist_url)
        return data

    def get_usd_prices(self, gecko_ids: List[str]) -> Dict[str, float]:
        if not gecko_ids:
            return {}
        data = self._get_json(
            self._coingecko_url,
            params={"ids": ",".join(gecko_ids), "vs_currencies": "usd"},
        )
        if not isinstance(data, dict):
            raise MalformedResponseError("price response is not an object", url=self._coingecko_url)
        prices: Dict[str, float] = {}
        for gecko_id, val in data.items():
            usd = val.get("usd") if isinstance(val, dict) else None
            if usd is not None:
                prices[gecko_id] = float(usd)
        return prices
