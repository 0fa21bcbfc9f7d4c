"""
Provider layer for Osmosis pool ingestion.

Upstream LCD endpoints are tracked by an EndpointRegistry (round-robin with
timed blacklisting); failures are escalated by a BackoffController (backoff,
id abandonment, cooldowns). Raw HTTP goes through OsmosisRestClient.
"""

from __future__ import annotations

from .base import (
    DenomTraceSource,
    Endpoint,
    EndpointStatus,
    MarketDataSource,
    PoolSource,
)
from .endpoints import BlacklistConfig, EndpointRegistry
from .resilience import BackoffController, RetryAction, RetryConfig, RetryDecision, RetryState
from .rest import OsmosisRestClient

__all__ = [
    "Endpoint",
    "EndpointStatus",
    "PoolSource",
    "DenomTraceSource",
    "MarketDataSource",
    "BlacklistConfig",
    "EndpointRegistry",
    "BackoffController",
    "RetryAction",
    "RetryConfig",
    "RetryDecision",
    "RetryState",
    "OsmosisRestClient",
]
