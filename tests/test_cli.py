"""CLI tests: query commands over a seeded corpus, harvest with fake sources, exit codes."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from osmosis_pools.cli.main import main
from osmosis_pools.normalize import normalize_pool
from osmosis_pools.store import PoolStore
from tests.fakes.providers import (
    ATOM_IBC,
    FakeMarketSource,
    FakePoolSource,
    FakeTraceSource,
    concentrated_pool,
    gamm_pool,
)

ATOM_HASH = ATOM_IBC[len("ibc/"):]


class FakeRestClient(FakeTraceSource, FakeMarketSource):
    def __init__(self) -> None:
        FakeTraceSource.__init__(self, {ATOM_HASH: {"path": "transfer/channel-0", "base_denom": "uatom"}})
        FakeMarketSource.__init__(self)


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch) -> Path:
    store = PoolStore(tmp_path)
    store.append(normalize_pool(gamm_pool(1)))
    store.append(normalize_pool(concentrated_pool(2)))
    monkeypatch.setattr("osmosis_pools.cli.main.create_rest_client", FakeRestClient)
    return tmp_path


def _run(data_dir: Path, *argv: str) -> int:
    return main(["--data-dir", str(data_dir), *argv])


class TestQueryCommands:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "osmosis-pools" in capsys.readouterr().out

    def test_unknown_command_exits_2(self):
        with pytest.raises(SystemExit) as excinfo:
            main(["frobnicate"])
        assert excinfo.value.code == 2

    def test_find(self, data_dir, capsys):
        assert _run(data_dir, "find", "UOSMO") == 0
        out = capsys.readouterr().out
        assert 'Found 2 pools containing "UOSMO":' in out
        assert "Pool #1 (gamm)" in out
        assert "Pool #2 (concentrated)" in out

    def test_find_exact(self, data_dir, capsys):
        assert _run(data_dir, "find-exact", "osmo") == 0
        assert 'Found 0 pools with exact match "osmo":' in capsys.readouterr().out

    def test_find_missing_term(self, data_dir, capsys):
        assert _run(data_dir, "find") == 0
        assert "Error: asset required" in capsys.readouterr().err

    def test_find_all_needs_two(self, data_dir, capsys):
        assert _run(data_dir, "find-all", "uosmo") == 0
        assert "Error: at least 2 assets required" in capsys.readouterr().err

    def test_find_all_and_any(self, data_dir, capsys):
        assert _run(data_dir, "find-all", "uosmo", ATOM_IBC) == 0
        assert "Found 1 pools containing ALL of" in capsys.readouterr().out
        assert _run(data_dir, "find-any", "uosmo", ATOM_IBC) == 0
        assert "Found 2 pools containing ANY of" in capsys.readouterr().out

    def test_search_decodes_and_prices(self, data_dir, capsys):
        assert _run(data_dir, "search", "atom") == 0
        out = capsys.readouterr().out
        assert "Found 1 pools:" in out
        assert "uatom (channel-0)" in out
        assert "TVL: $52.50K" in out

    def test_pool(self, data_dir, capsys):
        assert _run(data_dir, "pool", "2") == 0
        assert "Pool #2 (concentrated)" in capsys.readouterr().out

    def test_pool_not_found(self, data_dir, capsys):
        assert _run(data_dir, "pool", "99") == 0
        assert "Pool 99 not found" in capsys.readouterr().err

    def test_decode(self, data_dir, capsys):
        assert _run(data_dir, "decode", ATOM_IBC) == 0
        out = capsys.readouterr().out
        assert "Base:  uatom" in out
        assert "Display: uatom (channel-0)" in out

    def test_decode_native(self, data_dir, capsys):
        assert _run(data_dir, "decode", "uosmo") == 0
        assert "uosmo is not an IBC denom" in capsys.readouterr().out

    def test_stats(self, data_dir, capsys):
        assert _run(data_dir, "stats") == 0
        out = capsys.readouterr().out
        assert "Pools: 2  last id: 2  skipped ids: 0" in out
        assert "gamm: 1" in out

    def test_export(self, data_dir, tmp_path, capsys):
        target = tmp_path / "pools.csv"
        assert _run(data_dir, "export", str(target)) == 0
        df = pd.read_csv(target)
        assert list(df["id"]) == [1, 2]
        assert "Wrote 2 pools" in capsys.readouterr().out

    def test_unusable_data_dir_exits_1(self, tmp_path, capsys):
        blocker = tmp_path / "file"
        blocker.write_text("")
        assert main(["--data-dir", str(blocker / "data"), "stats"]) == 1
        assert "Startup failed" in capsys.readouterr().err


class TestHarvestCommand:
    def test_harvest_resumes(self, tmp_path, monkeypatch, capsys):
        cfg = tmp_path / "config.yaml"
        cfg.write_text(
            "retry:\n  initial_backoff_s: 0\n  request_delay_s: 0\n  short_wait_s: 0\n  long_wait_s: 0\n"
        )
        monkeypatch.setenv("OSMOSIS_POOLS_CONFIG", str(cfg))
        monkeypatch.setenv("OSMOSIS_POOLS_ENDPOINTS", "https://a.example,https://b.example")
        source = FakePoolSource({1: gamm_pool(1), 2: gamm_pool(2), 3: gamm_pool(3)})
        monkeypatch.setattr("osmosis_pools.ingest.create_rest_client", lambda: source)
        data = tmp_path / "data"

        assert main(["--data-dir", str(data), "harvest", "--max-pools", "2", "--no-liquidity"]) == 0
        assert "Saved 2 pools, skipped 0; next id 3" in capsys.readouterr().out
        assert main(["--data-dir", str(data), "harvest", "--max-pools", "1", "--no-liquidity"]) == 0
        assert [p.id for p in PoolStore(data).load().pools] == [1, 2, 3]
        assert source.liquidity_calls == []
