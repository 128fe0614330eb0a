"""
Order Service Protocol — Interface to the system that owns orders.

Pickman defines this protocol; the host project's order app implements it.
Pickman reads order lines and status from it and notifies it about picking
progress. It never writes orders directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class OrderLine:
    """One line item of an order."""

    barcode: str
    quantity: int
    sku: str | None = None
    product_name: str | None = None
    unit_price: Decimal | None = None


@dataclass(frozen=True)
class OrderInfo:
    """Order as seen by the fulfillment engine."""

    order_id: str
    order_number: str
    status: str
    lines: tuple[OrderLine, ...] = ()
    created_at: datetime | None = None


@runtime_checkable
class OrderBackend(Protocol):
    """
    Protocol for the Order Service.

    Notification methods are called after the surrounding transaction
    commits, so an implementation never sees progress that was rolled back.
    """

    def get_orders(self, order_ids: list[str]) -> dict[str, OrderInfo]:
        """
        Fetch orders by id.

        Args:
            order_ids: External order ids

        Returns:
            Dict[order_id, OrderInfo]; unknown ids are simply absent
        """
        ...

    def route_assigned(self, order_ids: list[str], route_code: str) -> None:
        """Orders were grouped into a route and picking started."""
        ...

    def route_released(self, order_ids: list[str], route_code: str) -> None:
        """Route was cancelled; orders are pickable again."""
        ...

    def picked_quantity_updated(self, order_id: str, barcode: str,
                                picked_quantity: int, quantity: int) -> None:
        """Picked counter of an order line changed."""
        ...

    def order_ready_for_packing(self, order_id: str, route_code: str) -> None:
        """Every line of the order in this route is picked."""
        ...
