"""Fake sources and payload builders for ingestion and query tests (no live network)."""

from .providers import (
    ASSET_LIST,
    ATOM_IBC,
    USDC_IBC,
    FakeMarketSource,
    FakePoolSource,
    FakeTraceSource,
    concentrated_pool,
    cosmwasm_pool,
    gamm_pool,
    stableswap_pool,
)

__all__ = [
    "ASSET_LIST",
    "ATOM_IBC",
    "USDC_IBC",
    "FakeMarketSource",
    "FakePoolSource",
    "FakeTraceSource",
    "concentrated_pool",
    "cosmwasm_pool",
    "gamm_pool",
    "stableswap_pool",
]
