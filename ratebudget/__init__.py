"""
In-process token bucket rate limiting.

This package provides:
- Per-unit token buckets with lazy refill
- Thread-safe store with per-bucket locking
- Pluggable recovery strategies
- YAML/env configuration and structured logging
"""

from __future__ import annotations

from .config import Configuration, RateLimitingSettings, UnitLimits
from .exceptions import (
    InvalidConsumptionError,
    InvalidPolicyError,
    RateBudgetError,
    RateLimitExceededError,
)
from .rate_limiting import (
    CallableStrategy,
    Clock,
    ConfiguredStrategy,
    FixedClock,
    FixedPolicyStrategy,
    InMemoryRateLimitStore,
    KeyedPolicyStrategy,
    RateLimitDescriptor,
    RateLimitPolicy,
    RateLimitService,
    RecoveryStrategy,
    SystemClock,
    attribute_key,
)

__version__ = "0.1.0"

__all__ = [
    "CallableStrategy",
    "Clock",
    # Configuration
    "Configuration",
    "ConfiguredStrategy",
    "FixedClock",
    "FixedPolicyStrategy",
    "InMemoryRateLimitStore",
    # Exceptions
    "InvalidConsumptionError",
    "InvalidPolicyError",
    "KeyedPolicyStrategy",
    "RateBudgetError",
    "RateLimitDescriptor",
    "RateLimitExceededError",
    "RateLimitPolicy",
    # Service
    "RateLimitService",
    "RateLimitingSettings",
    "RecoveryStrategy",
    "SystemClock",
    "UnitLimits",
    "attribute_key",
]
