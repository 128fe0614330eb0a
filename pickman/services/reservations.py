"""
Stock reservations — reserved and committed counters on ProductStock.

Only route and scan operations call these. Each update is a single
conditional UPDATE, so a counter can never go negative or reserve past
on_hand even under concurrent writers.
"""

import logging

from django.db.models import F

from pickman.exceptions import StockError
from pickman.models.product_stock import ProductStock

logger = logging.getLogger('pickman')


def _ensure_row(product) -> None:
    ProductStock.objects.get_or_create(product=product)


def _check_quantity(quantity) -> None:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise StockError('INVALID_QUANTITY', requested=quantity)


class StockReservations:
    """Reserve/commit/release counters."""

    @classmethod
    def lock(cls, products) -> list[ProductStock]:
        """
        Lock the ProductStock rows of products, in product id order.

        Must run inside transaction.atomic(). Rows are created first so
        that products without stock are locked too.
        """
        product_ids = sorted({product.pk for product in products})
        for product_id in product_ids:
            ProductStock.objects.get_or_create(product_id=product_id)
        return list(
            ProductStock.objects.select_for_update()
            .filter(product_id__in=product_ids)
            .order_by('product_id')
        )

    @classmethod
    def reserve(cls, product, quantity: int) -> None:
        """
        Earmark stock for an open route.

        reserved + quantity must stay within on_hand. Sellable stock may
        still be short; the transfer check reports that per route.

        Raises:
            StockError('INSUFFICIENT_STOCK'): If on_hand cannot cover it
        """
        _check_quantity(quantity)
        _ensure_row(product)

        updated = ProductStock.objects.filter(
            product=product,
            on_hand__gte=F('reserved') + quantity,
        ).update(reserved=F('reserved') + quantity)

        if not updated:
            row = ProductStock.objects.get(product=product)
            raise StockError(
                'INSUFFICIENT_STOCK',
                available=row.on_hand - row.reserved,
                requested=quantity,
                product_id=product.pk,
            )

        logger.debug("stock.reserved", extra={"product_id": product.pk, "quantity": quantity})

    @classmethod
    def commit(cls, product, quantity: int) -> None:
        """
        Move a picked quantity from reserved to committed.

        Raises:
            StockError('INVALID_RESERVATION'): If reserved is below quantity
        """
        _check_quantity(quantity)
        updated = ProductStock.objects.filter(
            product=product,
            reserved__gte=quantity,
        ).update(reserved=F('reserved') - quantity, committed=F('committed') + quantity)

        if not updated:
            raise StockError('INVALID_RESERVATION', counter='reserved',
                             requested=quantity, product_id=product.pk)

        logger.debug("stock.committed", extra={"product_id": product.pk, "quantity": quantity})

    @classmethod
    def release_reserved(cls, product, quantity: int) -> None:
        """
        Give back an unpicked reservation.

        Raises:
            StockError('INVALID_RESERVATION'): If reserved is below quantity
        """
        _check_quantity(quantity)
        updated = ProductStock.objects.filter(
            product=product,
            reserved__gte=quantity,
        ).update(reserved=F('reserved') - quantity)

        if not updated:
            raise StockError('INVALID_RESERVATION', counter='reserved',
                             requested=quantity, product_id=product.pk)

    @classmethod
    def release_committed(cls, product, quantity: int) -> None:
        """
        Clear committed stock once the route is handed over.

        Raises:
            StockError('INVALID_RESERVATION'): If committed is below quantity
        """
        _check_quantity(quantity)
        updated = ProductStock.objects.filter(
            product=product,
            committed__gte=quantity,
        ).update(committed=F('committed') - quantity)

        if not updated:
            raise StockError('INVALID_RESERVATION', counter='committed',
                             requested=quantity, product_id=product.pk)
