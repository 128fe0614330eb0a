"""
Enums for Pickman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ShelfClass(models.TextChoices):
    """
    Classification of a shelf.

    Only SELLABLE shelves count toward a product's sellable quantity.
    Everything else is physically present but cannot be picked for an order
    until it is transferred to a sellable shelf.
    """
    RECEIVING = 'RECEIVING', _('Receiving')
    SELLABLE = 'SELLABLE', _('Sellable')
    RETURN_NORMAL = 'RETURN_NORMAL', _('Return')
    RETURN_DAMAGED = 'RETURN_DAMAGED', _('Return (damaged)')
    TRANSIT = 'TRANSIT', _('In transit')


class MovementType(models.TextChoices):
    """Business reason of a ledger entry."""
    PICKING = 'PICKING', _('Picking')
    PACKING_IN = 'PACKING_IN', _('Packing in')
    PACKING_OUT = 'PACKING_OUT', _('Packing out')
    RECEIVING = 'RECEIVING', _('Receiving')
    TRANSFER = 'TRANSFER', _('Transfer')
    ADJUSTMENT = 'ADJUSTMENT', _('Adjustment')
    RETURN = 'RETURN', _('Return')
    CANCEL = 'CANCEL', _('Cancel')


class MovementDirection(models.TextChoices):
    """IN adds to the shelf, OUT removes from it."""
    IN = 'IN', _('In')
    OUT = 'OUT', _('Out')


class RouteStatus(models.TextChoices):
    """
    Route lifecycle.

    COLLECTING --(all items picked)--> READY --(packing done)--> COMPLETED
    COLLECTING --(cancel, nothing picked)--> CANCELLED
    """
    COLLECTING = 'COLLECTING', _('Collecting')
    READY = 'READY', _('Ready')
    COMPLETED = 'COMPLETED', _('Completed')
    CANCELLED = 'CANCELLED', _('Cancelled')


ROUTE_TRANSITIONS = {
    RouteStatus.COLLECTING: {RouteStatus.READY, RouteStatus.CANCELLED},
    RouteStatus.READY: {RouteStatus.COMPLETED},
    RouteStatus.COMPLETED: set(),
    RouteStatus.CANCELLED: set(),
}

ACTIVE_ROUTE_STATUSES = [RouteStatus.COLLECTING, RouteStatus.READY]


class ReturnCondition(models.TextChoices):
    """Condition of a returned item, decides the return shelf class."""
    NORMAL = 'NORMAL', _('Normal')
    DAMAGED = 'DAMAGED', _('Damaged')


class ReturnStatus(models.TextChoices):
    """
    Return item lifecycle.

    UNRESOLVED: barcode not yet linked to a product
    RESOLVED:   product known, not yet on a shelf
    RESTOCKED:  RETURN movement recorded
    """
    UNRESOLVED = 'UNRESOLVED', _('Unresolved')
    RESOLVED = 'RESOLVED', _('Resolved')
    RESTOCKED = 'RESTOCKED', _('Restocked')
