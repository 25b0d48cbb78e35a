"""
Rate limiting models and dataclasses.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import InvalidPolicyError


def _check_non_negative_int(name: str, value: Any, unit: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidPolicyError(
            f"{name} must be a non-negative integer, got {value!r}",
            unit=unit,
            context={name: value},
        )


@dataclass(frozen=True)
class RateLimitPolicy:
    """Policy produced per request by a recovery strategy."""
    limitation_unit_name: str
    fill_rate: int  # tokens recovered per second
    max_budget: int

    def __post_init__(self) -> None:
        if not isinstance(self.limitation_unit_name, str) or not self.limitation_unit_name:
            raise InvalidPolicyError(
                "limitation_unit_name must be a non-empty string",
                context={"limitation_unit_name": self.limitation_unit_name},
            )
        _check_non_negative_int("fill_rate", self.fill_rate, self.limitation_unit_name)
        _check_non_negative_int("max_budget", self.max_budget, self.limitation_unit_name)


@dataclass(frozen=True)
class RateLimitDescriptor:
    """Read-only snapshot of a bucket after a get or consume."""
    limitation_unit_name: str
    fill_rate: int
    max_budget: int
    current_budget: int

    @property
    def exceeded(self) -> bool:
        """True when consumption has driven the budget below zero."""
        return self.current_budget < 0

    @property
    def remaining(self) -> int:
        return max(self.current_budget, 0)

    def retry_after(self) -> int | None:
        """
        Whole seconds until the budget recovers to zero.

        Returns:
            0 when the budget is not exceeded, None when it never recovers
            (fill rate of zero).
        """
        deficit = -self.current_budget
        if deficit <= 0:
            return 0
        if self.fill_rate == 0:
            return None
        return -(-deficit // self.fill_rate)

    def as_dict(self) -> dict[str, Any]:
        return {
            "limitation_unit_name": self.limitation_unit_name,
            "fill_rate": self.fill_rate,
            "max_budget": self.max_budget,
            "current_budget": self.current_budget,
        }


@dataclass
class Bucket:
    """
    Mutable token bucket state for one limitation unit.

    All reads and writes of ``current_budget`` and ``last_update_time``
    happen while holding ``lock``.
    """
    limitation_unit_name: str
    fill_rate: int
    max_budget: int
    current_budget: int
    last_update_time: int  # epoch seconds
    lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    @classmethod
    def from_policy(cls, policy: RateLimitPolicy, now: int) -> Bucket:
        """Create a full bucket seeded from the first-seen policy."""
        return cls(
            limitation_unit_name=policy.limitation_unit_name,
            fill_rate=policy.fill_rate,
            max_budget=policy.max_budget,
            current_budget=policy.max_budget,
            last_update_time=now,
        )

    def snapshot(self) -> RateLimitDescriptor:
        return RateLimitDescriptor(
            limitation_unit_name=self.limitation_unit_name,
            fill_rate=self.fill_rate,
            max_budget=self.max_budget,
            current_budget=self.current_budget,
        )
