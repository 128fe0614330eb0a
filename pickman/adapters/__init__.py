"""
Pickman Adapters.

Implementations of protocols for external systems.
"""

from pickman.adapters.memory import InMemoryOrderBackend
from pickman.adapters.orders import get_order_backend, reset_order_backend

__all__ = [
    "InMemoryOrderBackend",
    "get_order_backend",
    "reset_order_backend",
]
