"""
Endpoint registry: round-robin selection over a static list of upstream
addresses with per-address failure counting and timed blacklisting.

Blacklist expiry is evaluated lazily at selection time. When every endpoint
is blacklisted, selection ignores the blacklist so the caller always gets an
address to try.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple

from ..core.timeutils import now_epoch
from .base import Endpoint, EndpointStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlacklistConfig:
    """Failures before an endpoint is benched, and for how long."""
    failure_threshold: int = 3
    duration_s: float = 3600.0


class EndpointRegistry:
    """
    Fixed list of endpoints with health tracking.

    Usage:
        registry = EndpointRegistry(["https://lcd.osmosis.zone", ...])
        endpoint, index = registry.select(index)
        ...
        registry.record_failure(endpoint, "HTTP 502")
        index = registry.next_index(index)
    """

    def __init__(
        self,
        addresses: Sequence[str],
        config: BlacklistConfig | None = None,
        clock: Callable[[], float] = now_epoch,
    ) -> None:
        if not addresses:
            raise ValueError("EndpointRegistry requires at least one address")
        self._endpoints: List[Endpoint] = [Endpoint(address=a) for a in addresses]
        self._config = config or BlacklistConfig()
        self._clock = clock

    def __len__(self) -> int:
        return len(self._endpoints)

    @property
    def endpoints(self) -> List[Endpoint]:
        return list(self._endpoints)

    def next_index(self, index: int) -> int:
        return (index + 1) % len(self._endpoints)

    def select(self, index: int) -> Tuple[Endpoint, int]:
        """
        Return the first non-blacklisted endpoint at or after `index` (wrapping),
        together with its index. Falls back to the endpoint at `index` when all
        are blacklisted.
        """
        now = self._clock()
        n = len(self._endpoints)
        start = index % n
        for offset in range(n):
            i = (start + offset) % n
            endpoint = self._endpoints[i]
            if not endpoint.is_blacklisted(now):
                return endpoint, i
        logger.warning(
            "All %d endpoints blacklisted; reusing %s", n, self._endpoints[start].address,
        )
        return self._endpoints[start], start

    def record_success(self, endpoint: Endpoint) -> None:
        endpoint.consecutive_failures = 0
        endpoint.blacklisted_until = None
        endpoint.last_error = None

    def record_failure(self, endpoint: Endpoint, error: str = "") -> None:
        endpoint.consecutive_failures += 1
        endpoint.last_error = error[:500] if error else None
        if endpoint.consecutive_failures >= self._config.failure_threshold:
            endpoint.blacklisted_until = self._clock() + self._config.duration_s
            logger.warning(
                "Blacklisting %s for %.0fs after %d failures: %s",
                endpoint.address,
                self._config.duration_s,
                endpoint.consecutive_failures,
                error[:200],
            )

    def health(self) -> Dict[str, EndpointStatus]:
        """Return status for every endpoint, keyed by address."""
        now = self._clock()
        return {e.address: e.status(now) for e in self._endpoints}
