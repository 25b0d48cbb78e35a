"""
In-memory token bucket store with per-bucket locking.

Buckets are created lazily on first touch from the policy supplied at that
moment. Later policies for the same unit name are ignored for the lifetime
of the bucket (first writer wins), so a strategy whose output varies per
request keeps whatever limits it produced first.

Refill and consumption for one bucket run under that bucket's lock only;
unrelated units never wait on each other. The store-wide lock is taken
only on the creation path of a previously unseen unit name.

Every touch sets ``last_update_time`` to ``max(last_update_time, now)``.
When the clock reads earlier than the last update, elapsed time counts
as zero and the stored time stays put, so the time between the regressed
reading and the original instant is never refilled a second time.
"""

from __future__ import annotations

import contextlib
import threading
from collections.abc import Iterator
from typing import Any

import structlog

from ..exceptions import InvalidConsumptionError
from ..logging_utils import operation_context
from .clock import Clock, SystemClock
from .models import Bucket, RateLimitDescriptor, RateLimitPolicy

logger = structlog.get_logger(__name__)


def validate_amount(amount: Any, unit: str | None = None) -> int:
    """
    Check a consumption amount at the boundary.

    Raises:
        InvalidConsumptionError: If amount is negative or not an int
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidConsumptionError(
            f"Consumption amount must be an integer, got {type(amount).__name__}",
            amount=amount,
            unit=unit,
        )
    if amount < 0:
        raise InvalidConsumptionError(
            f"Consumption amount must be non-negative, got {amount}",
            amount=amount,
            unit=unit,
        )
    return amount


class InMemoryRateLimitStore:
    """
    Process-local mapping from limitation unit name to token bucket.

    Construct one per process and hand it to every consumer. The clock is
    injected so tests can pin time; ``use_clock`` swaps it temporarily.
    """

    def __init__(self, clock: Clock | None = None):
        self._clock: Clock = clock or SystemClock()
        self._buckets: dict[str, Bucket] = {}
        self._create_lock = threading.Lock()

    @property
    def clock(self) -> Clock:
        return self._clock

    @contextlib.contextmanager
    def use_clock(self, clock: Clock) -> Iterator[Clock]:
        """Swap in ``clock`` for the duration of the block, then restore."""
        previous = self._clock
        self._clock = clock
        try:
            yield clock
        finally:
            self._clock = previous

    def get_or_create(self, policy: RateLimitPolicy) -> Bucket:
        """
        Fetch the bucket for the policy's unit, creating it if unseen.

        Exactly one bucket ever becomes visible per unit name even when
        several threads race on the first touch.
        """
        name = policy.limitation_unit_name
        bucket = self._buckets.get(name)
        if bucket is None:
            with self._create_lock:
                bucket = self._buckets.get(name)
                if bucket is None:
                    bucket = Bucket.from_policy(policy, self._clock.now())
                    self._buckets[name] = bucket
                    logger.info(
                        "Bucket created",
                        unit=name,
                        fill_rate=policy.fill_rate,
                        max_budget=policy.max_budget,
                    )
                    return bucket

        if (bucket.fill_rate, bucket.max_budget) != (policy.fill_rate, policy.max_budget):
            logger.debug(
                "Ignoring policy for existing bucket",
                unit=name,
                bucket_fill_rate=bucket.fill_rate,
                bucket_max_budget=bucket.max_budget,
                policy_fill_rate=policy.fill_rate,
                policy_max_budget=policy.max_budget,
            )
        return bucket

    def refill(self, policy: RateLimitPolicy) -> RateLimitDescriptor:
        """Apply time-based refill without consuming and return a snapshot."""
        return self._update(policy, 0)

    def consume(self, policy: RateLimitPolicy, amount: int) -> RateLimitDescriptor:
        """
        Refill, then subtract ``amount``. The budget may go negative.

        Args:
            policy: Policy resolved for the request
            amount: Tokens to draw, >= 0

        Returns:
            Post-consumption snapshot

        Raises:
            InvalidConsumptionError: If amount is negative or not an int
        """
        validate_amount(amount, unit=policy.limitation_unit_name)
        return self._update(policy, amount)

    def _update(self, policy: RateLimitPolicy, amount: int) -> RateLimitDescriptor:
        bucket = self.get_or_create(policy)
        with bucket.lock:
            now = self._clock.now()
            elapsed = now - bucket.last_update_time
            if elapsed < 0:
                logger.warning(
                    "Clock moved backwards, treating elapsed time as zero",
                    unit=bucket.limitation_unit_name,
                    last_update_time=bucket.last_update_time,
                    now=now,
                )
                elapsed = 0
            fill = elapsed * bucket.fill_rate
            budget = min(bucket.max_budget, bucket.current_budget + fill) - amount
            bucket.current_budget = budget
            bucket.last_update_time = max(bucket.last_update_time, now)
            snapshot = bucket.snapshot()

        logger.debug(
            "Budget updated",
            unit=snapshot.limitation_unit_name,
            elapsed_seconds=elapsed,
            filled=fill,
            consumed=amount,
            current_budget=snapshot.current_budget,
        )
        return snapshot

    def peek(self, limitation_unit_name: str) -> RateLimitDescriptor | None:
        """Snapshot a bucket without refilling or touching it."""
        bucket = self._buckets.get(limitation_unit_name)
        if bucket is None:
            return None
        with bucket.lock:
            return bucket.snapshot()

    def evict(self, limitation_unit_name: str) -> bool:
        """
        Drop a bucket so the next touch recreates it from a fresh policy.

        A call already holding the evicted bucket finishes against it; its
        update is not carried over to the replacement.
        """
        with self._create_lock:
            removed = self._buckets.pop(limitation_unit_name, None)
        if removed is not None:
            logger.info("Bucket evicted", unit=limitation_unit_name)
        return removed is not None

    def clear(self) -> None:
        with operation_context("clear_store") as op_logger:
            with self._create_lock:
                count = len(self._buckets)
                self._buckets.clear()
            op_logger.info("Store cleared", evicted=count)

    def unit_names(self) -> list[str]:
        with self._create_lock:
            return list(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, limitation_unit_name: object) -> bool:
        return limitation_unit_name in self._buckets
