"""
Token bucket rate limiting.

- Per-unit buckets with lazy time-based refill
- Per-bucket locking for concurrent request threads
- Pluggable recovery strategies
- Injectable clock
"""

from __future__ import annotations

from .clock import Clock, FixedClock, SystemClock
from .models import Bucket, RateLimitDescriptor, RateLimitPolicy
from .service import RateLimitService
from .store import InMemoryRateLimitStore, validate_amount
from .strategies import (
    CallableStrategy,
    ConfiguredStrategy,
    FixedPolicyStrategy,
    KeyedPolicyStrategy,
    RecoveryStrategy,
    attribute_key,
)

__all__ = [
    "Bucket",
    "CallableStrategy",
    "Clock",
    "ConfiguredStrategy",
    "FixedClock",
    "FixedPolicyStrategy",
    "InMemoryRateLimitStore",
    "KeyedPolicyStrategy",
    "RateLimitDescriptor",
    "RateLimitPolicy",
    "RateLimitService",
    "RecoveryStrategy",
    "SystemClock",
    "attribute_key",
    "validate_amount",
]
