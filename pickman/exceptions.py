"""
Exceptions for Pickman.

All errors carry a structured code for programmatic handling. Codes are
grouped in three categories:

- user: operator mistakes, reported for immediate retry (WRONG_SHELF, ...)
- integrity: broken invariants that must never happen in a healthy system
- precondition: rejected at the API boundary before any state is touched
"""

from typing import Any


USER_ERRORS = frozenset({
    'WRONG_SHELF',
    'OVER_PICK',
    'UNKNOWN_BARCODE_FOR_ROUTE',
    'TRANSFER_REQUIRED',
    'ROUTE_NOT_CANCELLABLE',
    'INVALID_ROUTE_TRANSITION',
    'INVALID_ROUTE_STATUS',
    'SHELF_SCAN_REQUIRED',
    'UNKNOWN_SHELF',
    'NOTHING_TO_PICK',
    'INSUFFICIENT_SHELF_STOCK',
    'INVALID_QUANTITY',
    'REASON_REQUIRED',
    'ALREADY_REVERSED',
    'INVALID_RETURN_STATUS',
})

INTEGRITY_ERRORS = frozenset({
    'INSUFFICIENT_STOCK',
    'STOCK_MISMATCH',
    'INVALID_RESERVATION',
})

PRECONDITION_ERRORS = frozenset({
    'EMPTY_ORDER_SET',
    'ORDER_NOT_PICKABLE',
    'INVALID_SHELF',
    'INVALID_PRODUCT',
    'ROUTE_NOT_FOUND',
})


class BaseError(Exception):
    """
    Base for structured errors.

    Usage:
        raise StockError('INSUFFICIENT_STOCK', available=3, requested=5)

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message (falls back to _default_messages)
        data: Additional context data
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    @property
    def category(self) -> str:
        """One of 'user', 'integrity', 'precondition'."""
        if self.code in INTEGRITY_ERRORS:
            return 'integrity'
        if self.code in PRECONDITION_ERRORS:
            return 'precondition'
        return 'user'

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'category': self.category,
            'message': self.message,
            'data': self.data,
        }


class StockError(BaseError):
    """
    Structured exception for ledger and stock store operations.

    Usage:
        try:
            fulfillment.transfer(5, product, damaged, sellable)
        except StockError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Only {e.available} on that shelf")
    """

    _default_messages = {
        'INSUFFICIENT_STOCK': 'Not enough stock on the shelf for this movement',
        'INVALID_QUANTITY': 'Quantity must be a positive integer',
        'INVALID_SHELF': 'Shelf is missing or not valid for this movement',
        'INVALID_PRODUCT': 'Product is missing or unknown',
        'INVALID_RESERVATION': 'Reservation counters would become negative',
        'REASON_REQUIRED': 'A reason is required',
        'ALREADY_REVERSED': 'Movement was already reversed',
        'INVALID_RETURN_STATUS': 'Return item is not in a valid status for this operation',
    }

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self) -> int:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)


class PickingError(BaseError):
    """
    Structured exception for route and scan operations.

    Usage:
        try:
            fulfillment.scan_barcode(route, '8690000000001', quantity=4)
        except PickingError as e:
            if e.code == 'OVER_PICK':
                print(f"Only {e.data['remaining']} left to pick")
    """

    _default_messages = {
        'EMPTY_ORDER_SET': 'A route needs at least one order',
        'ORDER_NOT_PICKABLE': 'Order cannot be added to a route',
        'ROUTE_NOT_FOUND': 'Route not found',
        'ROUTE_NOT_CANCELLABLE': 'Route has picked items and cannot be cancelled',
        'INVALID_ROUTE_TRANSITION': 'Route status transition is not allowed',
        'INVALID_ROUTE_STATUS': 'Route is not collecting',
        'TRANSFER_REQUIRED': 'Stock must be transferred to a sellable shelf before picking',
        'UNKNOWN_SHELF': 'Shelf not found',
        'NOTHING_TO_PICK': 'All items of this route are already picked',
        'WRONG_SHELF': 'Wrong shelf',
        'SHELF_SCAN_REQUIRED': 'Scan the shelf before scanning the product',
        'UNKNOWN_BARCODE_FOR_ROUTE': 'Barcode is not pending in this route',
        'INVALID_QUANTITY': 'Quantity must be a positive integer',
        'OVER_PICK': 'Requested quantity exceeds the remaining quantity',
        'INSUFFICIENT_SHELF_STOCK': 'Not enough units on this shelf, pick what is there and scan the next shelf',
        'STOCK_MISMATCH': 'Ledger rejected the pick although the route passed the transfer check',
    }
