"""
Returns intake — returned goods back onto return shelves.

    register_return()  -> UNRESOLVED, or RESOLVED when the barcode is known
    resolve_product()  -> RESOLVED (explicit link for unknown barcodes)
    restock_return()   -> RESTOCKED (RETURN IN on a return shelf)

Returned stock never lands on a SELLABLE shelf directly; moving it there is
an ordinary transfer.
"""

import logging

from django.db import transaction
from django.utils import timezone

from pickman.exceptions import StockError
from pickman.models.enums import MovementDirection, MovementType, ReturnCondition, ReturnStatus, ShelfClass
from pickman.models.product import Product
from pickman.models.returns import ReturnItem
from pickman.models.warehouse import Shelf
from pickman.services.ledger import MovementDraft, StockLedger

logger = logging.getLogger('pickman')

RETURN_SHELF_CLASS = {
    ReturnCondition.NORMAL: ShelfClass.RETURN_NORMAL,
    ReturnCondition.DAMAGED: ShelfClass.RETURN_DAMAGED,
}


def _locked_item(item) -> ReturnItem:
    pk = item.pk if isinstance(item, ReturnItem) else item
    return ReturnItem.objects.select_for_update().get(pk=pk)


class StockReturns:
    """Return item lifecycle."""

    @classmethod
    def register_return(cls, barcode: str, quantity: int,
                        condition: str = ReturnCondition.NORMAL,
                        order_reference: str = '', user=None) -> ReturnItem:
        """
        Register a returned item.

        Resolves the product right away when the barcode matches one.

        Raises:
            StockError('INVALID_QUANTITY'): If quantity is not a positive integer
        """
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise StockError('INVALID_QUANTITY', requested=quantity)
        if condition not in ReturnCondition.values:
            raise ValueError(f"Unknown return condition: {condition}")

        product = Product.objects.filter(barcode=barcode).first()
        item = ReturnItem.objects.create(
            barcode=barcode,
            quantity=quantity,
            condition=condition,
            order_reference=order_reference,
            product=product,
            status=ReturnStatus.RESOLVED if product else ReturnStatus.UNRESOLVED,
            resolved_at=timezone.now() if product else None,
            created_by=user,
        )

        logger.info(
            "return.registered",
            extra={
                "return_id": item.pk,
                "barcode": barcode,
                "quantity": quantity,
                "condition": condition,
                "resolved": product is not None,
            },
        )
        return item

    @classmethod
    def resolve_product(cls, item, product) -> ReturnItem:
        """
        Link an UNRESOLVED return to its product.

        Raises:
            StockError('INVALID_PRODUCT'): If product is missing
            StockError('INVALID_RETURN_STATUS'): If the item is not UNRESOLVED
        """
        if product is None or not Product.objects.filter(pk=product.pk).exists():
            raise StockError('INVALID_PRODUCT', product=str(product))

        with transaction.atomic():
            item = _locked_item(item)
            if item.status != ReturnStatus.UNRESOLVED:
                raise StockError('INVALID_RETURN_STATUS', return_id=item.pk,
                                 status=item.status, expected=ReturnStatus.UNRESOLVED)

            item.product = product
            item.status = ReturnStatus.RESOLVED
            item.resolved_at = timezone.now()
            item.save(update_fields=['product', 'status', 'resolved_at'])

        logger.info(
            "return.resolved",
            extra={"return_id": item.pk, "product_id": product.pk, "barcode": item.barcode},
        )
        return item

    @classmethod
    def restock_return(cls, item, shelf=None, user=None) -> ReturnItem:
        """
        Put a RESOLVED return onto a return shelf through the ledger.

        Args:
            item: ReturnItem or pk
            shelf: Target shelf (default: first shelf of the class matching
                the item's condition)

        Raises:
            StockError('INVALID_RETURN_STATUS'): If the item is not RESOLVED
            StockError('INVALID_SHELF'): If no return shelf fits the condition
        """
        with transaction.atomic():
            item = _locked_item(item)
            if item.status != ReturnStatus.RESOLVED:
                raise StockError('INVALID_RETURN_STATUS', return_id=item.pk,
                                 status=item.status, expected=ReturnStatus.RESOLVED)

            shelf_class = RETURN_SHELF_CLASS[ReturnCondition(item.condition)]
            if shelf is None:
                shelf = Shelf.objects.filter(shelf_class=shelf_class).order_by('code').first()
                if shelf is None:
                    raise StockError('INVALID_SHELF', message=f'No {shelf_class} shelf configured',
                                     expected_class=shelf_class)
            elif shelf.shelf_class != shelf_class:
                raise StockError('INVALID_SHELF', shelf=shelf.code,
                                 shelf_class=shelf.shelf_class, expected_class=shelf_class)

            movement = StockLedger.record(MovementDraft(
                product=item.product,
                shelf=shelf,
                quantity=item.quantity,
                movement_type=MovementType.RETURN,
                direction=MovementDirection.IN,
                target_shelf=shelf,
                order_reference=item.order_reference,
                user=user,
                metadata={'return_id': item.pk, 'condition': item.condition},
            ))

            item.movement = movement
            item.status = ReturnStatus.RESTOCKED
            item.restocked_at = timezone.now()
            item.save(update_fields=['movement', 'status', 'restocked_at'])

        logger.info(
            "return.restocked",
            extra={"return_id": item.pk, "shelf": shelf.code, "movement_id": movement.pk},
        )
        return item
