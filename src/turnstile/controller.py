"""Fixed-window admission controller."""

import math
import time
from collections.abc import Callable
from typing import Optional

import structlog

from turnstile.metrics import metrics
from turnstile.models import Decision, Policy
from turnstile.store import CounterStore

logger = structlog.get_logger()

UNKNOWN_IDENTITY = "unknown"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class AdmissionController:
    """
    Decides whether a caller may proceed under a policy.

    Each (policy, identity) pair gets a fixed window opened by its first
    request. Within a window at most ``policy.limit`` requests are admitted;
    the window end is never moved by later requests. Bursts of up to twice the
    limit are possible across a window boundary. That is the accepted cost of
    a fixed window and must not be smoothed into a sliding one here.
    """

    def __init__(
        self,
        store: Optional[CounterStore] = None,
        clock: Callable[[], int] = now_ms,
        unknown_identity: str = UNKNOWN_IDENTITY,
    ) -> None:
        self._store = store if store is not None else CounterStore()
        self._clock = clock
        self._unknown_identity = unknown_identity

    @property
    def store(self) -> CounterStore:
        return self._store

    def check_admission(self, identity: str, policy: Policy) -> Decision:
        """
        Count one request for ``identity`` under ``policy`` and decide.

        An empty identity falls into a shared fallback bucket. Rejection is
        reported through ``Decision.admitted``; this method does not raise.
        """
        identity = identity or self._unknown_identity
        now = self._clock()

        count, reset_at = self._store.hit(policy.counter_key(identity), policy.window_ms, now)

        if count > policy.limit:
            retry_after = math.ceil((reset_at - now) / 1000)
            decision = Decision(
                admitted=False,
                limit=policy.limit,
                remaining=0,
                resetAt=reset_at,
                retryAfter=retry_after,
            )
            logger.info(
                "admission_rejected",
                policy=policy.name,
                identity=identity,
                retry_after=retry_after,
            )
        else:
            decision = Decision(
                admitted=True,
                limit=policy.limit,
                remaining=policy.limit - count,
                resetAt=reset_at,
            )
            logger.debug(
                "admission_granted",
                policy=policy.name,
                identity=identity,
                remaining=decision.remaining,
            )

        metrics.admissions_total.labels(
            policy=policy.name,
            result="admitted" if decision.admitted else "rejected",
        ).inc()
        metrics.tracked_counters.set(len(self._store))
        return decision

    def sweep_expired(self) -> int:
        """Drop counters whose window has ended. Returns the number removed."""
        removed = self._store.sweep(self._clock())
        metrics.counters_swept_total.inc(removed)
        metrics.tracked_counters.set(len(self._store))
        return removed

    def reset(self) -> None:
        """Forget every counter."""
        self._store.clear()
        metrics.tracked_counters.set(0)
        logger.info("counters_reset")
