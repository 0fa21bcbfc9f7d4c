"""Isolate tests from a developer's config.yaml and environment."""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory, monkeypatch):
    monkeypatch.setenv("OSMOSIS_POOLS_CONFIG", str(tmp_path_factory.mktemp("cfg") / "absent.yaml"))
    for var in ("OSMOSIS_POOLS_DATA_DIR", "OSMOSIS_POOLS_ENDPOINTS", "OSMOSIS_POOLS_DETERMINISTIC_TIME"):
        monkeypatch.delenv(var, raising=False)
