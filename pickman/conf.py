"""
Pickman configuration, read from the ``PICKMAN`` dict in Django settings.

    PICKMAN = {
        # Dotted path to the Order Service adapter (required)
        "ORDER_BACKEND": "orders.adapters.pickman.OrderServiceBackend",
        # Order statuses create_route() accepts
        "PICKABLE_ORDER_STATUSES": ("WAITING_PICKING",),
        # Route codes: R000001, R000002, ...
        "ROUTE_CODE_PREFIX": "R",
        "ROUTE_CODE_DIGITS": 6,
        # Codes tried before create_route() gives up on a taken code
        "ROUTE_CODE_ATTEMPTS": 5,
    }

Unknown keys are rejected so that a typo does not silently fall back to
a default.
"""

from dataclasses import dataclass, fields
from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


@dataclass(frozen=True)
class PickmanSettings:
    ORDER_BACKEND: str = ""
    PICKABLE_ORDER_STATUSES: tuple[str, ...] = ("WAITING_PICKING",)
    ROUTE_CODE_PREFIX: str = "R"
    ROUTE_CODE_DIGITS: int = 6
    ROUTE_CODE_ATTEMPTS: int = 5

    def __post_init__(self):
        if isinstance(self.PICKABLE_ORDER_STATUSES, str) or not self.PICKABLE_ORDER_STATUSES:
            raise ImproperlyConfigured(
                "PICKMAN['PICKABLE_ORDER_STATUSES'] must be a non-empty sequence of statuses"
            )
        object.__setattr__(self, 'PICKABLE_ORDER_STATUSES', tuple(self.PICKABLE_ORDER_STATUSES))
        if self.ROUTE_CODE_DIGITS < 1 or self.ROUTE_CODE_ATTEMPTS < 1:
            raise ImproperlyConfigured(
                "PICKMAN['ROUTE_CODE_DIGITS'] and PICKMAN['ROUTE_CODE_ATTEMPTS'] must be >= 1"
            )


def get_pickman_settings() -> PickmanSettings:
    user_settings: dict[str, Any] = getattr(settings, "PICKMAN", {})
    known = {f.name for f in fields(PickmanSettings)}
    unknown = sorted(set(user_settings) - known)
    if unknown:
        raise ImproperlyConfigured(f"Unknown PICKMAN settings: {', '.join(unknown)}")
    return PickmanSettings(**user_settings)


class _LazySettings:
    """Re-reads Django settings on every access, so override_settings applies."""

    def __getattr__(self, name):
        return getattr(get_pickman_settings(), name)


pickman_settings = _LazySettings()
