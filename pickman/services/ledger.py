"""
Stock ledger — the single writer of on-hand quantities.

Every physical or book quantity change goes through StockLedger.record().
All methods use transaction.atomic() with row locking on LocationStock.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from django.db import transaction

from pickman.exceptions import StockError
from pickman.models.enums import MovementDirection, MovementType
from pickman.models.location_stock import LocationStock
from pickman.models.movement import StockMovement
from pickman.models.product import Product
from pickman.models.warehouse import Shelf

logger = logging.getLogger('pickman')


@dataclass(frozen=True)
class MovementDraft:
    """
    Intent to record a movement.

    quantity is always positive; direction says whether it enters (IN) or
    leaves (OUT) `shelf`.
    """

    product: Product
    shelf: Shelf
    quantity: int
    movement_type: str
    direction: str
    source_shelf: Shelf | None = None
    target_shelf: Shelf | None = None
    route: Any = None
    order_reference: str = ''
    user: Any = None
    note: str = ''
    metadata: dict = field(default_factory=dict)
    reverses: StockMovement | None = None


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _locked_location(product, shelf) -> LocationStock:
    location, _ = LocationStock.objects.get_or_create(product=product, shelf=shelf)
    return LocationStock.objects.select_for_update().get(pk=location.pk)


class StockLedger:
    """Ledger write operations."""

    @classmethod
    def record(cls, draft: MovementDraft) -> StockMovement:
        """
        Append a movement to the ledger.

        LocationStock and ProductStock are updated in the same transaction
        (see StockMovement.save), so no reader ever sees them disagree with
        the ledger.

        Raises:
            StockError('INVALID_QUANTITY'): If quantity is not a positive integer
            StockError('INVALID_PRODUCT'): If product is missing or unsaved
            StockError('INVALID_SHELF'): If shelf is missing or unsaved
            StockError('INSUFFICIENT_STOCK'): If an OUT would go below zero

        Concurrency:
            - Runs under transaction.atomic()
            - Uses select_for_update() on the LocationStock row
            - Verifies the resulting quantity after the lock
        """
        if not _is_positive_int(draft.quantity):
            raise StockError('INVALID_QUANTITY', requested=draft.quantity)
        if draft.product is None or not Product.objects.filter(pk=draft.product.pk).exists():
            raise StockError('INVALID_PRODUCT', product=str(draft.product))
        if draft.shelf is None or not Shelf.objects.filter(pk=draft.shelf.pk).exists():
            raise StockError('INVALID_SHELF', shelf=str(draft.shelf))
        if draft.movement_type not in MovementType.values:
            raise ValueError(f"Unknown movement type: {draft.movement_type}")
        if draft.direction not in MovementDirection.values:
            raise ValueError(f"Unknown direction: {draft.direction}")

        delta = draft.quantity if draft.direction == MovementDirection.IN else -draft.quantity

        with transaction.atomic():
            location = _locked_location(draft.product, draft.shelf)
            before = location.quantity

            if before + delta < 0:
                logger.error(
                    "ledger.insufficient_stock",
                    extra={
                        "product_id": draft.product.pk,
                        "shelf": draft.shelf.code,
                        "available": before,
                        "requested": draft.quantity,
                        "type": draft.movement_type,
                    },
                )
                raise StockError(
                    'INSUFFICIENT_STOCK',
                    available=before,
                    requested=draft.quantity,
                    shelf=draft.shelf.code,
                )

            movement = StockMovement.objects.create(
                product=draft.product,
                shelf=draft.shelf,
                delta=delta,
                movement_type=draft.movement_type,
                direction=draft.direction,
                source_shelf=draft.source_shelf,
                target_shelf=draft.target_shelf,
                route=draft.route,
                order_reference=draft.order_reference,
                reverses=draft.reverses,
                quantity_before=before,
                quantity_after=before + delta,
                note=draft.note,
                metadata=draft.metadata,
                user=draft.user,
            )
            logger.info(
                "ledger.record",
                extra={
                    "movement_id": movement.pk,
                    "product_id": draft.product.pk,
                    "shelf": draft.shelf.code,
                    "type": draft.movement_type,
                    "delta": delta,
                },
            )
            return movement

    @classmethod
    def receive(cls, quantity, product, shelf, user=None, note='',
                order_reference='', **metadata) -> StockMovement:
        """Goods receipt onto a shelf (RECEIVING, IN)."""
        return cls.record(MovementDraft(
            product=product,
            shelf=shelf,
            quantity=quantity,
            movement_type=MovementType.RECEIVING,
            direction=MovementDirection.IN,
            target_shelf=shelf,
            order_reference=order_reference,
            user=user,
            note=note,
            metadata=metadata,
        ))

    @classmethod
    def transfer(cls, quantity, product, from_shelf, to_shelf, user=None,
                 note='') -> tuple[StockMovement, StockMovement]:
        """
        Shelf-to-shelf move.

        Two TRANSFER entries (OUT of source, IN to target) in one atomic unit.

        Raises:
            StockError('INVALID_SHELF'): If source and target are the same shelf
            StockError('INSUFFICIENT_STOCK'): If the source holds less than quantity
        """
        if from_shelf is not None and to_shelf is not None and from_shelf.pk == to_shelf.pk:
            raise StockError('INVALID_SHELF', message='Cannot transfer to the same shelf',
                             shelf=from_shelf.code)

        with transaction.atomic():
            out = cls.record(MovementDraft(
                product=product,
                shelf=from_shelf,
                quantity=quantity,
                movement_type=MovementType.TRANSFER,
                direction=MovementDirection.OUT,
                source_shelf=from_shelf,
                target_shelf=to_shelf,
                user=user,
                note=note,
            ))
            into = cls.record(MovementDraft(
                product=product,
                shelf=to_shelf,
                quantity=quantity,
                movement_type=MovementType.TRANSFER,
                direction=MovementDirection.IN,
                source_shelf=from_shelf,
                target_shelf=to_shelf,
                user=user,
                note=note,
            ))
        return out, into

    @classmethod
    def adjust(cls, product, shelf, new_quantity, reason, user=None) -> StockMovement | None:
        """
        Inventory count correction.

        Calculates delta automatically: new_quantity - current quantity.
        Returns None when nothing changes.

        Raises:
            StockError('REASON_REQUIRED'): If reason is empty
            StockError('INVALID_QUANTITY'): If new_quantity is negative
        """
        if not reason:
            raise StockError('REASON_REQUIRED')
        if not isinstance(new_quantity, int) or isinstance(new_quantity, bool) or new_quantity < 0:
            raise StockError('INVALID_QUANTITY', requested=new_quantity)

        with transaction.atomic():
            location = _locked_location(product, shelf)
            delta = new_quantity - location.quantity

            if delta == 0:
                return None

            return cls.record(MovementDraft(
                product=product,
                shelf=shelf,
                quantity=abs(delta),
                movement_type=MovementType.ADJUSTMENT,
                direction=MovementDirection.IN if delta > 0 else MovementDirection.OUT,
                user=user,
                note=reason,
            ))

    @classmethod
    def reverse(cls, movement: StockMovement, reason, user=None) -> StockMovement:
        """
        Compensate a movement with a CANCEL entry in the opposite direction.

        Only stock is corrected; route picked counters are not touched.

        Raises:
            StockError('REASON_REQUIRED'): If reason is empty
            StockError('ALREADY_REVERSED'): If the movement was reversed before,
                or is itself a CANCEL entry
            StockError('INSUFFICIENT_STOCK'): If reversing an IN would go below zero
        """
        if not reason:
            raise StockError('REASON_REQUIRED')

        with transaction.atomic():
            original = StockMovement.objects.select_for_update().select_related(
                'product', 'shelf', 'route',
            ).get(pk=movement.pk)

            if original.movement_type == MovementType.CANCEL:
                raise StockError('ALREADY_REVERSED', message='Cancel movements cannot be reversed',
                                 movement_id=original.pk)
            if StockMovement.objects.filter(reverses=original).exists():
                raise StockError('ALREADY_REVERSED', movement_id=original.pk)

            reversal = cls.record(MovementDraft(
                product=original.product,
                shelf=original.shelf,
                quantity=original.quantity,
                movement_type=MovementType.CANCEL,
                direction=(
                    MovementDirection.OUT if original.direction == MovementDirection.IN
                    else MovementDirection.IN
                ),
                source_shelf=original.target_shelf,
                target_shelf=original.source_shelf,
                route=original.route,
                order_reference=original.order_reference,
                reverses=original,
                user=user,
                note=reason,
            ))
            logger.info(
                "ledger.reversed",
                extra={"movement_id": original.pk, "reversal_id": reversal.pk, "reason": reason},
            )
            return reversal
