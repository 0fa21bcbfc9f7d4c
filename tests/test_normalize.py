"""Pool normalization: type precedence, per-type extraction, liquidity mapping."""
from __future__ import annotations

import pytest

from osmosis_pools.normalize import (
    CanonicalPool,
    Fees,
    PoolType,
    classify,
    normalize_pool,
    normalize_response,
)

from tests.fakes import ATOM_IBC, USDC_IBC, concentrated_pool, cosmwasm_pool, gamm_pool, stableswap_pool


class TestClassify:
    @pytest.mark.parametrize(
        "tag,expected",
        [
            ("/osmosis.concentratedliquidity.v1beta1.Pool", PoolType.CONCENTRATED),
            ("/osmosis.gamm.poolmodels.stableswap.v1beta1.Pool", PoolType.STABLESWAP),
            ("/osmosis.cosmwasmpool.v1beta1.CosmWasmPool", PoolType.COSMWASM),
            ("/osmosis.gamm.v1beta1.Pool", PoolType.GAMM),
            ("/osmosis.something.new.Pool", PoolType.UNKNOWN),
            ("", PoolType.UNKNOWN),
        ],
    )
    def test_tags(self, tag, expected):
        assert classify(tag) is expected

    def test_stableswap_wins_over_gamm(self):
        assert "gamm" in "/osmosis.gamm.poolmodels.stableswap.v1beta1.Pool"
        assert classify("/osmosis.gamm.poolmodels.stableswap.v1beta1.Pool") is PoolType.STABLESWAP

    def test_case_insensitive(self):
        assert classify("/Osmosis.ConcentratedLiquidity.V1beta1.Pool") is PoolType.CONCENTRATED


class TestNormalizePool:
    def test_gamm(self):
        pool = normalize_pool(gamm_pool(1))
        assert pool.id == 1
        assert pool.type is PoolType.GAMM
        assert pool.address == "osmo1gamm1"
        assert pool.assets == {"1": "uosmo", "2": ATOM_IBC}
        assert pool.fees == Fees(swap_fee="0.002000000000000000", exit_fee="0.000000000000000000")
        assert pool.liquidity == {
            "1": {"denom": "uosmo", "amount": "5000000000"},
            "2": {"denom": ATOM_IBC, "amount": "5000000000"},
        }

    def test_concentrated_uses_spread_factor(self):
        pool = normalize_pool(concentrated_pool(1066))
        assert pool.type is PoolType.CONCENTRATED
        assert pool.assets == {"1": "uosmo", "2": USDC_IBC}
        assert pool.fees.swap_fee == "0.000500000000000000"
        assert pool.fees.exit_fee == ""
        assert pool.liquidity is None

    def test_stableswap(self):
        pool = normalize_pool(stableswap_pool(833))
        assert pool.type is PoolType.STABLESWAP
        assert pool.assets == {"1": USDC_IBC, "2": "uusdc"}
        assert pool.fees.swap_fee == "0.000100000000000000"

    def test_cosmwasm_tokens_strings_or_objects(self):
        pool = normalize_pool(cosmwasm_pool(1300, tokens=["uosmo", {"denom": "uion"}]))
        assert pool.type is PoolType.COSMWASM
        assert pool.id == 1300
        assert pool.address == "osmo1cw1300"
        assert pool.assets == {"1": "uosmo", "2": "uion"}

    def test_cosmwasm_assets_from_liquidity(self):
        liquidity = [{"denom": "uosmo", "amount": "10"}, {"denom": "uion", "amount": "20"}]
        pool = normalize_pool(cosmwasm_pool(5), liquidity=liquidity)
        assert pool.assets == {"1": "uosmo", "2": "uion"}
        assert pool.liquidity == {
            "1": {"denom": "uosmo", "amount": "10"},
            "2": {"denom": "uion", "amount": "20"},
        }

    def test_fetched_liquidity_overrides_embedded(self):
        liquidity = [{"denom": "uosmo", "amount": "7"}]
        pool = normalize_pool(gamm_pool(1), liquidity=liquidity)
        assert pool.liquidity == {"1": {"denom": "uosmo", "amount": "7"}}

    def test_unknown_type_degrades(self):
        raw = {"@type": "/osmosis.future.Pool", "id": "9", "address": "osmo1x", "token0": "uosmo"}
        pool = normalize_pool(raw)
        assert pool.type is PoolType.UNKNOWN
        assert pool.assets == {}
        assert pool.fees == Fees()
        assert pool.id == 9

    def test_missing_id_uses_requested(self):
        raw = gamm_pool(3)
        del raw["id"]
        assert normalize_pool(raw, requested_id=3).id == 3

    def test_deterministic(self):
        raw = gamm_pool(42)
        assert normalize_pool(raw) == normalize_pool(raw)
        assert normalize_pool(raw).to_dict() == normalize_pool(raw).to_dict()


class TestNormalizeResponse:
    def test_missing_envelope_is_error(self):
        result = normalize_response({"code": 5, "message": "not found"}, requested_id=1)
        assert not result.ok
        assert result.error == "response missing 'pool'"

    def test_non_dict_is_error(self):
        assert not normalize_response(None).ok

    def test_ok(self):
        result = normalize_response({"pool": gamm_pool(2)}, requested_id=2)
        assert result.ok
        assert result.pool.id == 2


class TestCanonicalPoolDict:
    def test_from_dict_restores_record(self):
        pool = normalize_pool(gamm_pool(4))
        assert CanonicalPool.from_dict(pool.to_dict()) == pool

    def test_to_dict_omits_absent_liquidity(self):
        d = normalize_pool(concentrated_pool(1)).to_dict()
        assert "liquidity" not in d
        assert d["type"] == "concentrated"
        assert d["fees"] == {"swap_fee": "0.000500000000000000", "exit_fee": ""}

    def test_bad_type_reads_as_unknown(self):
        pool = CanonicalPool.from_dict({"id": 1, "type": "bogus"})
        assert pool.type is PoolType.UNKNOWN
        assert pool.assets == {}
