"""
Rate limit service: strategy resolution in front of the bucket store.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ..exceptions import RateLimitExceededError
from ..logging_utils import ContextualLogger
from .models import RateLimitDescriptor, RateLimitPolicy
from .store import InMemoryRateLimitStore, validate_amount
from .strategies import CallableStrategy, RecoveryStrategy


class RateLimitService:
    """
    Resolves a request's limitation unit and applies get/consume to it.

    A ``None`` return from ``get``/``consume`` means the strategy chose not
    to limit the request. A negative ``current_budget`` in the returned
    descriptor means the budget is exhausted; the caller decides what to
    do with that. ``enforce`` turns the latter into an exception.
    """

    def __init__(
        self,
        strategy: RecoveryStrategy | Callable[[Any], RateLimitPolicy | None],
        store: InMemoryRateLimitStore | None = None,
        name: str = "rate_limit_service",
    ):
        if not isinstance(strategy, RecoveryStrategy):
            if not callable(strategy):
                raise TypeError(
                    f"strategy must define resolve() or be callable, got {type(strategy).__name__}"
                )
            strategy = CallableStrategy(strategy)
        self.strategy: RecoveryStrategy = strategy
        self.store = store if store is not None else InMemoryRateLimitStore()
        self._logger = ContextualLogger({"service": name})

    def get(self, request: Any) -> RateLimitDescriptor | None:
        """Refill the request's bucket without consuming and return its state."""
        policy = self.strategy.resolve(request)
        if policy is None:
            self._logger.debug("No rate limit policy for request")
            return None
        return self.store.refill(policy)

    def consume(self, request: Any, amount: int) -> RateLimitDescriptor | None:
        """
        Refill the request's bucket, then draw ``amount`` tokens from it.

        Args:
            request: Opaque request descriptor handed to the strategy
            amount: Tokens to consume, >= 0

        Returns:
            Post-consumption descriptor, or None when no limiting applies

        Raises:
            InvalidConsumptionError: If amount is negative or not an int
        """
        validate_amount(amount)
        policy = self.strategy.resolve(request)
        if policy is None:
            self._logger.debug("No rate limit policy for request")
            return None
        return self.store.consume(policy, amount)

    def enforce(self, request: Any, amount: int = 1) -> RateLimitDescriptor | None:
        """
        Consume and raise if the budget is now negative.

        The consumption is recorded either way, matching ``consume``.

        Raises:
            RateLimitExceededError: If the resulting budget is below zero
            InvalidConsumptionError: If amount is negative or not an int
        """
        descriptor = self.consume(request, amount)
        if descriptor is None or not descriptor.exceeded:
            return descriptor

        retry_after = descriptor.retry_after()
        self._logger.warning(
            "Rate limit exceeded",
            unit=descriptor.limitation_unit_name,
            current_budget=descriptor.current_budget,
            retry_after=retry_after,
        )
        raise RateLimitExceededError(
            f"Rate limit exceeded for '{descriptor.limitation_unit_name}' "
            f"(budget {descriptor.current_budget})",
            descriptor=descriptor,
            retry_after=retry_after,
            context={"amount": amount},
        )
