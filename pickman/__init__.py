"""
Django Pickman: warehouse fulfillment on top of an immutable stock ledger.

    from pickman import fulfillment, PickingError

    fulfillment.receive(50, soap, shelf_a1)
    route = fulfillment.create_route(["1001", "1002"])
    fulfillment.scan_shelf(route, "A-01-01")
    fulfillment.scan_barcode(route, soap.barcode, quantity=2)

Names below are resolved on first access; importing them eagerly would
load models before the app registry is ready.
"""

from importlib import import_module

_EXPORTS = {
    'fulfillment': ('pickman.service', 'Fulfillment'),
    'StockError': ('pickman.exceptions', 'StockError'),
    'PickingError': ('pickman.exceptions', 'PickingError'),
    'Warehouse': ('pickman.models.warehouse', 'Warehouse'),
    'Shelf': ('pickman.models.warehouse', 'Shelf'),
    'Product': ('pickman.models.product', 'Product'),
    'StockMovement': ('pickman.models.movement', 'StockMovement'),
    'Route': ('pickman.models.route', 'Route'),
    'RouteLine': ('pickman.models.route', 'RouteLine'),
    'ReturnItem': ('pickman.models.returns', 'ReturnItem'),
    'ShelfClass': ('pickman.models.enums', 'ShelfClass'),
    'RouteStatus': ('pickman.models.enums', 'RouteStatus'),
}


def __getattr__(name):
    try:
        module, attr = _EXPORTS[name]
    except KeyError:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}") from None
    return getattr(import_module(module), attr)


__all__ = list(_EXPORTS)

__version__ = '0.1.0'
