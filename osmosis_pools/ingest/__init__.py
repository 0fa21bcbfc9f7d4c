"""
Ingestion API: harvest context and the pool-by-pool run loop.

CLI must use this module instead of wiring providers and the store itself.
The loop fetches one pool id at a time, rotating endpoints and escalating
failures through the BackoffController. Every wait goes through
`stop_event.wait()`, so setting the event stops the loop at the next
suspension point.

A single harvester process per data directory is assumed; nothing here
locks pools.json against a second writer.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import config
from ..core.errors import MalformedResponseError, TransportError
from ..normalize import CanonicalPool, NormalizeResult, normalize_response
from ..providers.base import PoolSource
from ..providers.defaults import create_backoff_controller, create_endpoint_registry, create_rest_client
from ..providers.endpoints import EndpointRegistry
from ..providers.resilience import BackoffController, RetryAction
from ..store.json_cache import ensure_data_dir
from ..store.pool_store import PoolStore, resume_id

logger = logging.getLogger(__name__)


@dataclass
class HarvestStats:
    """Outcome of one run() call."""

    persisted: int = 0
    skipped: List[int] = field(default_factory=list)
    next_id: int = 1
    stopped: bool = False


@dataclass
class HarvestContext:
    """Everything one ingestion loop owns. Build with get_harvest_context()."""

    store: PoolStore
    registry: EndpointRegistry
    controller: BackoffController
    source: PoolSource
    fetch_liquidity: bool = True


def get_harvest_context(
    data_dir: Optional[Path] = None,
    *,
    source: Any = None,
    registry: Optional[EndpointRegistry] = None,
    controller: Optional[BackoffController] = None,
    fetch_liquidity: Optional[bool] = None,
) -> HarvestContext:
    """
    Ensure the data directory, then build store, registry, controller and HTTP client.
    Any of source/registry/controller may be injected (for tests).
    Raises StartupError if the data directory is unusable.
    """
    root = ensure_data_dir(Path(data_dir) if data_dir is not None else config.data_dir())
    return HarvestContext(
        store=PoolStore(root),
        registry=registry or create_endpoint_registry(),
        controller=controller or create_backoff_controller(),
        source=source or create_rest_client(),
        fetch_liquidity=config.fetch_liquidity() if fetch_liquidity is None else fetch_liquidity,
    )


def fetch_pool(ctx: HarvestContext, address: str, pool_id: int) -> NormalizeResult:
    """
    One attempt for one pool id against one endpoint.

    With fetch_liquidity, the pool and its liquidity are requested concurrently
    and both must succeed. Raises TransportError on any transport failure.
    """
    liquidity: Optional[List[Dict[str, Any]]] = None
    if ctx.fetch_liquidity:
        with ThreadPoolExecutor(max_workers=2) as executor:
            pool_future = executor.submit(ctx.source.get_pool, address, pool_id)
            liq_future = executor.submit(ctx.source.get_pool_liquidity, address, pool_id)
            payload = pool_future.result()
            liquidity = liq_future.result()
    else:
        payload = ctx.source.get_pool(address, pool_id)
    return normalize_response(payload, pool_id, liquidity)


def _checked_pool(result: NormalizeResult, pool_id: int) -> CanonicalPool:
    if result.pool is None:
        raise MalformedResponseError(result.error or "unusable response")
    if result.pool.id != pool_id:
        raise MalformedResponseError(f"asked for pool {pool_id}, got {result.pool.id}")
    return result.pool


def run(
    ctx: HarvestContext,
    stop_event: Optional[threading.Event] = None,
    *,
    start_id: Optional[int] = None,
    max_pools: Optional[int] = None,
    log: logging.Logger | None = None,
) -> HarvestStats:
    """
    Harvest pools from the resume point until stop_event is set, or until
    `max_pools` ids have been persisted or abandoned.
    """
    _log = log if log is not None else logger
    stop = stop_event or threading.Event()
    corpus = ctx.store.load()
    next_id = resume_id(corpus)
    if start_id is not None:
        if start_id < next_id:
            _log.warning("start id %d is not past stored pools; resuming at %d", start_id, next_id)
        else:
            next_id = start_id

    stats = HarvestStats(next_id=next_id)
    state = ctx.controller.new_state()
    request_delay_s = ctx.controller.config.request_delay_s
    pool_id = next_id
    index = 0

    def _done() -> bool:
        return max_pools is not None and stats.persisted + len(stats.skipped) >= max_pools

    _log.info("Harvest starting at pool %d over %d endpoints", pool_id, len(ctx.registry))
    while not stop.is_set() and not _done():
        endpoint, index = ctx.registry.select(index)
        try:
            pool = _checked_pool(fetch_pool(ctx, endpoint.address, pool_id), pool_id)
        except TransportError as exc:
            _log.warning("pool %d via %s failed: %s", pool_id, endpoint.address, exc)
            ctx.registry.record_failure(endpoint, str(exc))
            index = ctx.registry.next_index(index)
            decision = ctx.controller.on_failure(state)
            if decision.action is RetryAction.ABANDON:
                _log.warning("Giving up on pool %d after %d attempts", pool_id, ctx.controller.config.max_retries)
                ctx.store.record_skipped(pool_id)
                stats.skipped.append(pool_id)
                pool_id += 1
                stats.next_id = pool_id
            if decision.cooldown_s > 0 and stop.wait(decision.cooldown_s):
                break
            if decision.delay_s > 0 and stop.wait(decision.delay_s):
                break
            continue

        ctx.registry.record_success(endpoint)
        ctx.controller.on_success(state)
        ctx.store.append(pool)
        stats.persisted += 1
        _log.info("Saved pool %d (%s, %d assets)", pool.id, pool.type.value, len(pool.assets))
        pool_id += 1
        stats.next_id = pool_id
        if request_delay_s > 0 and stop.wait(request_delay_s):
            break

    stats.stopped = stop.is_set()
    _log.info("Harvest finished: %d saved, %d skipped, next id %d", stats.persisted, len(stats.skipped), stats.next_id)
    _log.info("Endpoint health: %s", {addr: s.value for addr, s in ctx.registry.health().items()})
    return stats


__all__ = [
    "HarvestContext",
    "HarvestStats",
    "fetch_pool",
    "get_harvest_context",
    "run",
]
