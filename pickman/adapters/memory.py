"""
In-memory Order Backend — Stub adapter for development and testing.

Orders are kept in a dict and notifications are recorded in a list, with
the status changes the real Order Service would apply:

- route_assigned          → PICKING
- route_released          → WAITING_PICKING
- order_ready_for_packing → PICKED

Usage in settings.py:
    PICKMAN = {
        "ORDER_BACKEND": "pickman.adapters.memory.InMemoryOrderBackend",
    }

WARNING: Do NOT use in production. Orders live in process memory and are
lost on restart.
"""

from __future__ import annotations

from dataclasses import replace

from pickman.protocols.orders import OrderInfo, OrderLine


class InMemoryOrderBackend:
    """
    Order backend keeping orders in process memory.

    Implements the ``OrderBackend`` protocol without external dependencies,
    making it suitable for local development, tests and CI.
    """

    def __init__(self):
        self.orders: dict[str, OrderInfo] = {}
        self.events: list[tuple] = []

    def add_order(self, order_id: str, lines: list[tuple[str, int]] | list[OrderLine],
                  order_number: str | None = None,
                  status: str = "WAITING_PICKING") -> OrderInfo:
        """
        Register an order.

        Args:
            order_id: External id
            lines: OrderLine objects or (barcode, quantity) pairs
            order_number: Display number (defaults to order_id)
            status: Initial status
        """
        parsed = tuple(
            line if isinstance(line, OrderLine) else OrderLine(barcode=line[0], quantity=line[1])
            for line in lines
        )
        order = OrderInfo(
            order_id=order_id,
            order_number=order_number or order_id,
            status=status,
            lines=parsed,
        )
        self.orders[order_id] = order
        return order

    def clear(self) -> None:
        self.orders.clear()
        self.events.clear()

    def _set_status(self, order_id: str, status: str) -> None:
        if order_id in self.orders:
            self.orders[order_id] = replace(self.orders[order_id], status=status)

    # Protocol

    def get_orders(self, order_ids: list[str]) -> dict[str, OrderInfo]:
        return {oid: self.orders[oid] for oid in order_ids if oid in self.orders}

    def route_assigned(self, order_ids: list[str], route_code: str) -> None:
        self.events.append(("route_assigned", tuple(order_ids), route_code))
        for order_id in order_ids:
            self._set_status(order_id, "PICKING")

    def route_released(self, order_ids: list[str], route_code: str) -> None:
        self.events.append(("route_released", tuple(order_ids), route_code))
        for order_id in order_ids:
            self._set_status(order_id, "WAITING_PICKING")

    def picked_quantity_updated(self, order_id: str, barcode: str,
                                picked_quantity: int, quantity: int) -> None:
        self.events.append(("picked_quantity_updated", order_id, barcode, picked_quantity, quantity))

    def order_ready_for_packing(self, order_id: str, route_code: str) -> None:
        self.events.append(("order_ready_for_packing", order_id, route_code))
        self._set_status(order_id, "PICKED")
