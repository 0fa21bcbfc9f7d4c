"""
Top-level CLI dispatcher: osmosis-pools <command> [args...].

Query commands read the harvested corpus (pools.json) and never touch the
network except for denom-trace and price lookups. `harvest` runs the
ingestion loop until interrupted.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .. import config
from ..core.errors import OsmosisPoolsError, StartupError
from ..denom import DenomResolver, format_display, is_ibc_denom
from ..normalize import CanonicalPool
from ..price import PriceEnricher
from ..providers.defaults import create_rest_client
from ..query import QueryEngine, format_decorated, format_pool, pools_frame, type_counts
from ..store.json_cache import ensure_data_dir
from ..store.pool_store import PoolStore

LIST_LIMIT = 20
SEARCH_LIMIT = 10

_EXAMPLES = """\
Examples:
  osmosis-pools find uosmo
  osmosis-pools find-all uosmo uatom
  osmosis-pools search atom
  osmosis-pools pool 1
  osmosis-pools decode ibc/27394FB092D2ECCD56123C74F36E4C1F926001CEADA9CA97EA622B25F41E5EB2
  osmosis-pools harvest --max-pools 100
"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="osmosis-pools",
        description="Osmosis pool harvester and query CLI",
        epilog=_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--data-dir", default=None, help="Data directory (default from config: data)")
    parser.add_argument("--log-level", default=None, help="Logging level (default: INFO for harvest, WARNING otherwise)")
    subparsers = parser.add_subparsers(dest="command", metavar="command")

    p = subparsers.add_parser("find", help="Find pools containing asset (partial match)")
    p.add_argument("term", nargs="?")
    p = subparsers.add_parser("find-exact", help="Find pools with exact asset match")
    p.add_argument("term", nargs="?")
    p = subparsers.add_parser("find-all", help="Find pools containing ALL assets")
    p.add_argument("terms", nargs="*")
    p = subparsers.add_parser("find-any", help="Find pools containing ANY asset")
    p.add_argument("terms", nargs="*")
    p = subparsers.add_parser("search", help="Search by base denom (decodes IBC)")
    p.add_argument("term", nargs="?")
    p = subparsers.add_parser("pool", help="Get pool by ID")
    p.add_argument("pool_id", nargs="?")
    p = subparsers.add_parser("decode", help="Decode IBC denom")
    p.add_argument("denom", nargs="?")

    p = subparsers.add_parser("harvest", help="Harvest pools from the resume point until interrupted")
    p.add_argument("--start-id", type=int, default=None, metavar="N", help="First pool id (must be past stored pools)")
    p.add_argument("--max-pools", type=int, default=None, metavar="N", help="Stop after N ids saved or skipped")
    p.add_argument("--no-liquidity", dest="fetch_liquidity", action="store_false", default=None,
                   help="Do not fetch total pool liquidity alongside each pool")

    subparsers.add_parser("stats", help="Pool counts by type and skipped ids")
    p = subparsers.add_parser("export", help="Write the corpus as CSV")
    p.add_argument("path", nargs="?")
    return parser


def _configure_logging(level: Optional[str], default: int) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), default) if level else default,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _data_dir(args: argparse.Namespace) -> Path:
    return ensure_data_dir(Path(args.data_dir) if args.data_dir else config.data_dir())


def _resolver(root: Path) -> DenomResolver:
    return DenomResolver(root, create_rest_client(), config.trace_endpoints())


def _engine(root: Path, enrich: bool = False) -> QueryEngine:
    prices = None
    if enrich:
        s = config.price_settings()
        prices = PriceEnricher(
            root, create_rest_client(), ttl_s=float(s["ttl_s"]), assetlist_ttl_s=float(s["assetlist_ttl_s"]),
        )
    return QueryEngine.from_store(PoolStore(root), resolver=_resolver(root), prices=prices)


def _print_pools(pools: Sequence[CanonicalPool], header: str, limit: int = LIST_LIMIT) -> None:
    print(f"{header}\n")
    for pool in pools[:limit]:
        print(format_pool(pool))
        print()
    if len(pools) > limit:
        print(f"... and {len(pools) - limit} more")


def _error(msg: str) -> int:
    print(f"Error: {msg}", file=sys.stderr)
    return 0


def _cmd_find(args: argparse.Namespace, exact: bool) -> int:
    if not args.term:
        return _error("asset required")
    pools = _engine(_data_dir(args)).find_by_asset(args.term, exact=exact)
    label = "with exact match" if exact else "containing"
    _print_pools(pools, f'Found {len(pools)} pools {label} "{args.term}":')
    return 0


def _cmd_find_many(args: argparse.Namespace, require_all: bool) -> int:
    if len(args.terms) < 2:
        return _error("at least 2 assets required")
    engine = _engine(_data_dir(args))
    pools = engine.find_by_all_assets(args.terms) if require_all else engine.find_by_any_asset(args.terms)
    mode = "ALL" if require_all else "ANY"
    _print_pools(pools, f"Found {len(pools)} pools containing {mode} of [{', '.join(args.terms)}]:")
    return 0


def _cmd_search(args: argparse.Namespace) -> int:
    if not args.term:
        return _error("base denom required")
    print(f'Searching for "{args.term}" (decoding IBC denoms)...\n')
    engine = _engine(_data_dir(args), enrich=True)
    pools = engine.search_by_base_denom(args.term)
    print(f"Found {len(pools)} pools:\n")
    for pool in pools[:SEARCH_LIMIT]:
        print(format_decorated(engine.decorate(pool)))
        print()
    if len(pools) > SEARCH_LIMIT:
        print(f"... and {len(pools) - SEARCH_LIMIT} more")
    return 0


def _cmd_pool(args: argparse.Namespace) -> int:
    if not args.pool_id:
        return _error("pool ID required")
    engine = _engine(_data_dir(args), enrich=True)
    pool = engine.get_by_id(args.pool_id)
    if pool is None:
        print(f"Pool {args.pool_id} not found", file=sys.stderr)
        return 0
    print(format_decorated(engine.decorate(pool)))
    return 0


def _cmd_decode(args: argparse.Namespace) -> int:
    if not args.denom:
        return _error("IBC denom required")
    if not is_ibc_denom(args.denom):
        print(f"{args.denom} is not an IBC denom")
        return 0
    decoded = _resolver(_data_dir(args)).decode(args.denom)
    print(f"Denom: {args.denom}")
    print(f"Base:  {decoded.base_denom or 'unknown'}")
    print(f"Path:  {decoded.path or 'unknown'}")
    print(f"Display: {format_display(decoded)}")
    return 0


def _cmd_harvest(args: argparse.Namespace) -> int:
    from .. import ingest

    ctx = ingest.get_harvest_context(_data_dir(args), fetch_liquidity=args.fetch_liquidity)
    try:
        stats = ingest.run(ctx, start_id=args.start_id, max_pools=args.max_pools)
    except KeyboardInterrupt:
        print("Interrupted; progress is saved and the next run resumes.", file=sys.stderr)
        return 0
    print(f"Saved {stats.persisted} pools, skipped {len(stats.skipped)}; next id {stats.next_id}")
    return 0


def _cmd_stats(args: argparse.Namespace) -> int:
    corpus = PoolStore(_data_dir(args)).load(create_missing=False)
    print(f"Pools: {len(corpus.pools)}  last id: {corpus.last_id or '-'}  skipped ids: {len(corpus.skipped)}")
    if corpus.pools:
        for pool_type, n in type_counts(corpus.pools).items():
            print(f"  {pool_type}: {n}")
    if corpus.skipped:
        print(f"  skipped: {', '.join(str(i) for i in corpus.skipped[:LIST_LIMIT])}")
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    if not args.path:
        return _error("output path required")
    corpus = PoolStore(_data_dir(args)).load(create_missing=False)
    pools_frame(corpus.pools).to_csv(args.path, index=False)
    print(f"Wrote {len(corpus.pools)} pools to {args.path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    cmd = args.command
    _configure_logging(args.log_level, logging.INFO if cmd == "harvest" else logging.WARNING)

    try:
        if cmd == "find":
            return _cmd_find(args, exact=False)
        if cmd == "find-exact":
            return _cmd_find(args, exact=True)
        if cmd == "find-all":
            return _cmd_find_many(args, require_all=True)
        if cmd == "find-any":
            return _cmd_find_many(args, require_all=False)
        if cmd == "search":
            return _cmd_search(args)
        if cmd == "pool":
            return _cmd_pool(args)
        if cmd == "decode":
            return _cmd_decode(args)
        if cmd == "harvest":
            return _cmd_harvest(args)
        if cmd == "stats":
            return _cmd_stats(args)
        if cmd == "export":
            return _cmd_export(args)
    except StartupError as e:
        print(f"Startup failed: {e}", file=sys.stderr)
        return 1
    except OsmosisPoolsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser.print_usage(sys.stderr)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
