"""
Default provider wiring.

Builds the endpoint registry, backoff controller and HTTP client from
config.yaml settings. To change endpoints or policy, edit config.yaml or set
OSMOSIS_POOLS_ENDPOINTS.
"""
from __future__ import annotations

from typing import List, Optional

from .. import config
from .endpoints import BlacklistConfig, EndpointRegistry
from .resilience import BackoffController, RetryConfig
from .rest import OsmosisRestClient


def load_retry_config() -> RetryConfig:
    s = config.retry_settings()
    return RetryConfig(
        max_retries=int(s["max_retries"]),
        initial_backoff_s=float(s["initial_backoff_s"]),
        request_delay_s=float(s["request_delay_s"]),
        short_wait_s=float(s["short_wait_s"]),
        long_wait_s=float(s["long_wait_s"]),
        short_wait_threshold=int(s["short_wait_threshold"]),
        short_wait_max_count=int(s["short_wait_max_count"]),
    )


def load_blacklist_config() -> BlacklistConfig:
    s = config.blacklist_settings()
    return BlacklistConfig(
        failure_threshold=int(s["failure_threshold"]),
        duration_s=float(s["duration_s"]),
    )


def create_endpoint_registry(addresses: Optional[List[str]] = None) -> EndpointRegistry:
    """Build the registry over configured LCD endpoints."""
    return EndpointRegistry(addresses or config.endpoints(), load_blacklist_config())


def create_backoff_controller() -> BackoffController:
    return BackoffController(load_retry_config())


def create_rest_client() -> OsmosisRestClient:
    prices = config.price_settings()
    return OsmosisRestClient(
        timeout_s=config.http_timeout_s(),
        assetlist_url=prices["assetlist_url"],
        coingecko_url=prices["coingecko_url"],
    )
