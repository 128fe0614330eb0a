"""
Pickman Models.

Core models for fulfillment:
- Warehouse, Shelf: Where stock exists
- Product: What is stocked
- StockMovement: Immutable ledger of changes
- LocationStock: Quantity cache per (product, shelf)
- ProductStock: Per-product on-hand/sellable/reserved/committed roll-up
- Route, RouteLine: Orders grouped into one picking walk
- ReturnItem: Returned goods awaiting restock
"""

from pickman.models.enums import (
    MovementDirection,
    MovementType,
    ReturnCondition,
    ReturnStatus,
    RouteStatus,
    ShelfClass,
)
from pickman.models.location_stock import LocationStock
from pickman.models.movement import StockMovement
from pickman.models.product import Product
from pickman.models.product_stock import ProductStock
from pickman.models.returns import ReturnItem
from pickman.models.route import Route, RouteLine
from pickman.models.warehouse import Shelf, Warehouse

__all__ = [
    'ShelfClass',
    'MovementType',
    'MovementDirection',
    'RouteStatus',
    'ReturnCondition',
    'ReturnStatus',
    'Warehouse',
    'Shelf',
    'Product',
    'StockMovement',
    'LocationStock',
    'ProductStock',
    'Route',
    'RouteLine',
    'ReturnItem',
]
