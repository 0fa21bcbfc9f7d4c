"""
Load config from config.yaml with optional env overrides.
Single source of truth for data directory, upstream endpoints, retry/blacklist policy, and cache TTLs.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List

# Defaults if no YAML or env
_DEFAULTS: Dict[str, Any] = {
    "data_dir": "data",
    "endpoints": [
        "https://lcd.osmosis.zone",
        "https://rest.lavenderfive.com:443/osmosis",
        "https://rest-osmosis.ecostake.com",
        "https://osmosis-api.polkachu.com",
        "https://rest.osmosis.goldenratiostaking.net",
    ],
    "trace_endpoints": [
        "https://rest-osmosis.ecostake.com",
        "https://lcd.osmosis.zone",
    ],
    "retry": {
        "max_retries": 5,
        "initial_backoff_s": 1.0,
        "request_delay_s": 0.1,
        "short_wait_s": 60.0,
        "long_wait_s": 300.0,
        "short_wait_threshold": 15,
        "short_wait_max_count": 3,
    },
    "blacklist": {
        "failure_threshold": 3,
        "duration_s": 3600.0,
    },
    "prices": {
        "ttl_s": 300.0,
        "assetlist_ttl_s": 86400.0,
        "assetlist_url": "https://raw.githubusercontent.com/cosmos/chain-registry/master/osmosis/assetlist.json",
        "coingecko_url": "https://api.coingecko.com/api/v3/simple/price",
    },
    "http": {"timeout_s": 15.0},
    "fetch_liquidity": True,
}


def _config_yaml_path() -> Path:
    """OSMOSIS_POOLS_CONFIG if set, else config.yaml at repo root (parent of package dir)."""
    override = os.environ.get("OSMOSIS_POOLS_CONFIG")
    if override:
        return Path(override)
    return Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    import yaml

    config_path = _config_yaml_path()
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _env_overrides() -> dict:
    overrides: dict = {}
    data_dir = os.environ.get("OSMOSIS_POOLS_DATA_DIR")
    if data_dir:
        overrides["data_dir"] = data_dir
    endpoints = os.environ.get("OSMOSIS_POOLS_ENDPOINTS")
    if endpoints:
        overrides["endpoints"] = [e.strip() for e in endpoints.split(",") if e.strip()]
    return overrides


def get_config() -> dict:
    """Return merged config: defaults <- config.yaml <- env."""
    merged = _deep_merge(_DEFAULTS, _load_yaml())
    merged = _deep_merge(merged, _env_overrides())
    return merged


# Convenience accessors
def data_dir() -> Path:
    return Path(get_config()["data_dir"])


def endpoints() -> List[str]:
    return [str(e).rstrip("/") for e in get_config()["endpoints"]]


def trace_endpoints() -> List[str]:
    return [str(e).rstrip("/") for e in get_config()["trace_endpoints"]]


def retry_settings() -> dict:
    return dict(get_config()["retry"])


def blacklist_settings() -> dict:
    return dict(get_config()["blacklist"])


def price_settings() -> dict:
    return dict(get_config()["prices"])


def http_timeout_s() -> float:
    return float(get_config()["http"]["timeout_s"])


def fetch_liquidity() -> bool:
    return bool(get_config().get("fetch_liquidity", True))
