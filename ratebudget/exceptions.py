"""
Error types for rate budget operations.

Budget exhaustion is not an error for ``get``/``consume``; callers read a
negative ``current_budget`` instead. These exceptions cover invalid
arguments at the boundary and the opt-in ``enforce`` path:
- Policy validation
- Consumption amount validation
- Retry guidance for exhausted budgets
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .rate_limiting.models import RateLimitDescriptor


class RateBudgetError(Exception):
    """Base rate budget error with context."""

    def __init__(
        self,
        message: str,
        unit: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.unit = unit
        self.context = context or {}


class InvalidPolicyError(RateBudgetError, ValueError):
    """A policy carries an empty unit name or a negative rate/budget."""
    pass


class InvalidConsumptionError(RateBudgetError, ValueError):
    """Consumption amount is negative or not an integer."""

    def __init__(self, message: str, amount: Any, **kwargs):
        super().__init__(message, **kwargs)
        self.amount = amount


class RateLimitExceededError(RateBudgetError):
    """Budget went negative on an enforced consumption."""

    def __init__(
        self,
        message: str,
        descriptor: RateLimitDescriptor,
        retry_after: int | None = None,
        **kwargs,
    ):
        super().__init__(message, unit=descriptor.limitation_unit_name, **kwargs)
        self.descriptor = descriptor
        self.retry_after = retry_after
