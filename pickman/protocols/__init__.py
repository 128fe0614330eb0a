"""
Pickman Protocols.

Defines interfaces for external system integration.
"""

from pickman.protocols.orders import (
    OrderBackend,
    OrderInfo,
    OrderLine,
)

__all__ = [
    "OrderBackend",
    "OrderInfo",
    "OrderLine",
]
