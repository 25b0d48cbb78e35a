"""
Recovery strategies: map an opaque request to a rate limit policy.

A strategy returns ``None`` when no limiting applies to the request. The
store and service never look inside the request themselves.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .models import RateLimitPolicy

if TYPE_CHECKING:
    from ..config import RateLimitingSettings

KeyFunc = Callable[[Any], str | None]


@runtime_checkable
class RecoveryStrategy(Protocol):
    """Resolves the limitation unit and its policy for a request."""

    def resolve(self, request: Any) -> RateLimitPolicy | None:
        ...


class FixedPolicyStrategy:
    """Applies one policy to every request."""

    def __init__(self, policy: RateLimitPolicy):
        self.policy = policy

    def resolve(self, request: Any) -> RateLimitPolicy | None:
        return self.policy


class CallableStrategy:
    """Adapts a plain function ``request -> policy | None``."""

    def __init__(self, func: Callable[[Any], RateLimitPolicy | None]):
        self.func = func

    def resolve(self, request: Any) -> RateLimitPolicy | None:
        return self.func(request)


def attribute_key(*names: str) -> KeyFunc:
    """
    Build a key function reading the first non-empty attribute.

    Mapping requests are read by key, anything else by attribute, so the
    same function works for dict-like scopes and request objects.

    Example:
        >>> key = attribute_key("client_id", "remote_addr")
        >>> key({"remote_addr": "192.0.2.123"})
        '192.0.2.123'
    """
    if not names:
        raise ValueError("attribute_key needs at least one attribute name")

    def key_func(request: Any) -> str | None:
        for name in names:
            if isinstance(request, Mapping):
                value = request.get(name)
            else:
                value = getattr(request, name, None)
            if value is not None and value != "":
                return str(value)
        return None

    return key_func


class KeyedPolicyStrategy:
    """Same limits for every caller, one bucket per derived key."""

    def __init__(
        self,
        key_func: KeyFunc,
        fill_rate: int,
        max_budget: int,
        prefix: str = "",
    ):
        self.key_func = key_func
        self.fill_rate = fill_rate
        self.max_budget = max_budget
        self.prefix = prefix

    def resolve(self, request: Any) -> RateLimitPolicy | None:
        key = self.key_func(request)
        if key is None:
            return None
        return RateLimitPolicy(f"{self.prefix}{key}", self.fill_rate, self.max_budget)


class ConfiguredStrategy:
    """
    Strategy driven by ``RateLimitingSettings``.

    Exempt units and a disabled configuration resolve to ``None``. Units
    listed under ``units`` get their own limits; everyone else gets the
    defaults. Exemptions and overrides match the derived key before the
    prefix is applied.
    """

    def __init__(self, settings: RateLimitingSettings, key_func: KeyFunc):
        self.settings = settings
        self.key_func = key_func

    def resolve(self, request: Any) -> RateLimitPolicy | None:
        if not self.settings.enabled:
            return None
        key = self.key_func(request)
        if key is None or key in self.settings.exempt_units:
            return None

        limits = self.settings.units.get(key)
        fill_rate = limits.fill_rate if limits else self.settings.default_fill_rate
        max_budget = limits.max_budget if limits else self.settings.default_max_budget
        return RateLimitPolicy(f"{self.settings.unit_prefix}{key}", fill_rate, max_budget)
