"""IBC denom decoding: path parsing, display format, permanent cache, endpoint fallback."""
from __future__ import annotations

import json

import pytest

from osmosis_pools.denom import (
    DecodedDenom,
    DenomResolver,
    format_display,
    ibc_hash,
    is_ibc_denom,
    parse_ibc_path,
)

from tests.fakes import ATOM_IBC, FakeTraceSource

ATOM_HASH = ATOM_IBC[len("ibc/"):]


@pytest.fixture
def source():
    return FakeTraceSource({ATOM_HASH: {"path": "transfer/channel-0", "base_denom": "uatom"}})


class TestHelpers:
    def test_is_ibc(self):
        assert is_ibc_denom(ATOM_IBC)
        assert is_ibc_denom("IBC/ABC")
        assert not is_ibc_denom("uosmo")

    def test_hash(self):
        assert ibc_hash(ATOM_IBC) == ATOM_HASH
        assert ibc_hash(ATOM_HASH) == ATOM_HASH

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("transfer/channel-0", ["channel-0"]),
            ("transfer/channel-0/transfer/channel-3", ["channel-0", "channel-3"]),
            ("", []),
            (None, []),
            ("wasm.osmo1xyz/channel-1", []),
        ],
    )
    def test_parse_path(self, path, expected):
        assert parse_ibc_path(path) == expected

    def test_format_display(self):
        one = DecodedDenom(ATOM_IBC, True, "uatom", "transfer/channel-0")
        two = DecodedDenom("ibc/X", True, "uusdc", "transfer/channel-1/transfer/channel-2")
        assert format_display(one) == "uatom (channel-0)"
        assert format_display(two) == "uusdc (channel-1 -> channel-2)"
        assert format_display(DecodedDenom("ibc/X", True, "uusdc", "")) == "uusdc"
        assert format_display(DecodedDenom("ibc/X", True)) == "ibc/X"
        assert format_display(DecodedDenom("uosmo", False)) == "uosmo"


class TestDenomResolver:
    def test_second_lookup_served_from_cache(self, tmp_path, source):
        resolver = DenomResolver(tmp_path, source, ["a", "b"])
        first = resolver.resolve(ATOM_IBC)
        second = resolver.resolve(ATOM_HASH)
        assert first == second
        assert first.base_denom == "uatom"
        assert len(source.calls) == 1

    def test_cache_persists_across_instances(self, tmp_path, source):
        DenomResolver(tmp_path, source, ["a"]).resolve(ATOM_IBC)
        doc = json.loads((tmp_path / "denoms.json").read_text())
        assert doc[ATOM_HASH] == {"base_denom": "uatom", "path": "transfer/channel-0"}
        fresh = FakeTraceSource({})
        assert DenomResolver(tmp_path, fresh, ["a"]).resolve(ATOM_IBC).base_denom == "uatom"
        assert fresh.calls == []

    def test_falls_through_to_next_endpoint(self, tmp_path):
        source = FakeTraceSource(
            {ATOM_HASH: {"path": "transfer/channel-0", "base_denom": "uatom"}},
            down_addresses=["a"],
        )
        trace = DenomResolver(tmp_path, source, ["a", "b"]).resolve(ATOM_IBC)
        assert trace.base_denom == "uatom"
        assert [c[0] for c in source.calls] == ["a", "b"]

    def test_failure_not_written_to_disk(self, tmp_path):
        source = FakeTraceSource({})
        assert DenomResolver(tmp_path, source, ["a", "b"]).resolve("ibc/UNKNOWN") is None
        assert not (tmp_path / "denoms.json").exists()
        assert DenomResolver(tmp_path, source, ["a", "b"]).resolve("ibc/UNKNOWN") is None
        assert len(source.calls) == 4

    def test_failure_remembered_for_resolver_lifetime(self, tmp_path):
        source = FakeTraceSource({})
        resolver = DenomResolver(tmp_path, source, ["a", "b"])
        assert resolver.resolve("ibc/UNKNOWN") is None
        assert resolver.decode("ibc/UNKNOWN") == DecodedDenom("ibc/UNKNOWN", True)
        assert len(source.calls) == 2

    def test_decode(self, tmp_path, source):
        resolver = DenomResolver(tmp_path, source, ["a"])
        assert resolver.decode("uosmo") == DecodedDenom("uosmo", False)
        decoded = resolver.decode(ATOM_IBC)
        assert decoded.is_ibc
        assert format_display(decoded) == "uatom (channel-0)"
        assert resolver.decode("ibc/MISSING") == DecodedDenom("ibc/MISSING", True)

    def test_decode_many_dedupes(self, tmp_path, source):
        resolver = DenomResolver(tmp_path, source, ["a"])
        out = resolver.decode_many([ATOM_IBC, "uosmo", ATOM_IBC])
        assert list(out) == [ATOM_IBC, "uosmo"]
        assert len(source.calls) == 1
