"""
Order backend loader — resolves the configured Order Service adapter.

Usage:
    from pickman.adapters import get_order_backend

    backend = get_order_backend()
    orders = backend.get_orders(["1001", "1002"])

Settings:
    PICKMAN = {
        "ORDER_BACKEND": "orders.adapters.pickman.OrderServiceBackend",
    }

If ORDER_BACKEND is not configured, get_order_backend() raises ImproperlyConfigured.
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from pickman.conf import pickman_settings
from pickman.protocols.orders import OrderBackend

logger = logging.getLogger(__name__)


# Cached backend instance
_lock = threading.Lock()
_order_backend: OrderBackend | None = None


def get_order_backend() -> OrderBackend:
    """
    Return the configured Order Service backend.

    Raises:
        ImproperlyConfigured: If ORDER_BACKEND is not configured or import fails
    """
    global _order_backend

    if _order_backend is None:
        with _lock:
            if _order_backend is None:  # double-checked
                backend_path = pickman_settings.ORDER_BACKEND

                if not backend_path:
                    raise ImproperlyConfigured(
                        "PICKMAN['ORDER_BACKEND'] must be configured. "
                        "Example: 'orders.adapters.pickman.OrderServiceBackend'"
                    )

                try:
                    backend_class = import_string(backend_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import order backend '{backend_path}': {e}"
                    ) from e

                _order_backend = backend_class()
                logger.debug("Loaded order backend: %s", backend_path)

    return _order_backend


def reset_order_backend() -> None:
    """Reset the cached backend. Useful for testing."""
    global _order_backend
    _order_backend = None
