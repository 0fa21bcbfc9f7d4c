"""
Resilience primitives for the ingestion loop: retry state, exponential
backoff, id abandonment, and global cooldown escalation.

The controller only decides; the caller performs the waits. Three nested
levels:
- per-attempt backoff: delay doubles after each failure on the same id.
- id abandonment: after `max_retries` failures the id is skipped.
- cooldown: after `short_wait_threshold` failures without any success, a
  short wait; after `short_wait_max_count` short waits, one long wait.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry with exponential backoff and cooldowns."""
    max_retries: int = 5
    initial_backoff_s: float = 1.0
    request_delay_s: float = 0.1
    short_wait_s: float = 60.0
    long_wait_s: float = 300.0
    short_wait_threshold: int = 15
    short_wait_max_count: int = 3


@dataclass
class RetryState:
    """Mutable retry counters owned by one ingestion loop."""
    consecutive_failures: int = 0
    current_backoff_s: float = 1.0
    short_cooldown_count: int = 0
    failure_streak: int = 0

    @classmethod
    def initial(cls, config: RetryConfig) -> "RetryState":
        return cls(current_backoff_s=config.initial_backoff_s)


class RetryAction(enum.Enum):
    RETRY = "RETRY"
    ABANDON = "ABANDON"


@dataclass(frozen=True)
class RetryDecision:
    """What the loop should do after a failed attempt."""
    action: RetryAction
    delay_s: float = 0.0
    cooldown_s: float = 0.0


class BackoffController:
    """
    Failure-escalation policy over one pool id at a time.

    Usage:
        controller = BackoffController(RetryConfig())
        state = controller.new_state()
        decision = controller.on_failure(state)
        if decision.action is RetryAction.ABANDON: ...
    """

    def __init__(self, config: RetryConfig | None = None) -> None:
        self._config = config or RetryConfig()

    @property
    def config(self) -> RetryConfig:
        return self._config

    def new_state(self) -> RetryState:
        return RetryState.initial(self._config)

    def on_success(self, state: RetryState) -> None:
        state.consecutive_failures = 0
        state.current_backoff_s = self._config.initial_backoff_s
        state.short_cooldown_count = 0
        state.failure_streak = 0

    def on_failure(self, state: RetryState) -> RetryDecision:
        cfg = self._config
        state.consecutive_failures += 1
        state.failure_streak += 1

        cooldown_s = 0.0
        if state.failure_streak >= cfg.short_wait_threshold:
            if state.short_cooldown_count < cfg.short_wait_max_count:
                state.short_cooldown_count += 1
                cooldown_s = cfg.short_wait_s
                logger.warning(
                    "%d failures without success: short cooldown %d/%d (%.0fs)",
                    state.failure_streak, state.short_cooldown_count,
                    cfg.short_wait_max_count, cooldown_s,
                )
            else:
                cooldown_s = cfg.long_wait_s
                state.short_cooldown_count = 0
                logger.warning(
                    "%d failures without success after %d short cooldowns: long cooldown (%.0fs)",
                    state.failure_streak, cfg.short_wait_max_count, cooldown_s,
                )
            state.failure_streak = 0

        if state.consecutive_failures < cfg.max_retries:
            delay = state.current_backoff_s
            state.current_backoff_s = delay * 2
            return RetryDecision(RetryAction.RETRY, delay_s=delay, cooldown_s=cooldown_s)

        state.consecutive_failures = 0
        state.current_backoff_s = cfg.initial_backoff_s
        return RetryDecision(RetryAction.ABANDON, cooldown_s=cooldown_s)
