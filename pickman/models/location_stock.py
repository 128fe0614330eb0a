"""
LocationStock model — Quantity cache per (product, shelf).
"""

import logging

from django.db import models
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _

from pickman.models.enums import ShelfClass

logger = logging.getLogger('pickman')


class LocationStockQuerySet(models.QuerySet):
    """Chainable filters for LocationStock rows."""

    def for_product(self, product):
        return self.filter(product=product)

    def at_shelf(self, shelf):
        return self.filter(shelf=shelf)

    def sellable(self):
        """Only rows on SELLABLE shelves."""
        return self.filter(shelf__shelf_class=ShelfClass.SELLABLE)

    def non_sellable(self):
        return self.exclude(shelf__shelf_class=ShelfClass.SELLABLE)

    def in_stock(self):
        return self.filter(_quantity__gt=0)


class LocationStock(models.Model):
    """
    Quantity of a product on a shelf.

    Performance:
    - _quantity is a cache updated atomically by StockMovement.save()
    - Read is O(1), not O(N)
    - Use recalculate() for audit/correction

    Rows are created on the first movement and kept at zero afterwards.
    """

    product = models.ForeignKey(
        'pickman.Product',
        on_delete=models.PROTECT,
        related_name='location_stocks',
        verbose_name=_('Product'),
    )
    shelf = models.ForeignKey(
        'pickman.Shelf',
        on_delete=models.PROTECT,
        related_name='stocks',
        verbose_name=_('Shelf'),
    )

    # Quantity cache (updated atomically by StockMovement)
    _quantity = models.IntegerField(default=0, verbose_name=_('Quantity'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LocationStockQuerySet.as_manager()

    class Meta:
        verbose_name = _('Location stock')
        verbose_name_plural = _('Location stocks')
        constraints = [
            models.UniqueConstraint(
                fields=['product', 'shelf'],
                name='unique_location_stock',
            ),
            models.CheckConstraint(
                condition=models.Q(_quantity__gte=0),
                name='location_stock_not_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['shelf', 'product'], name='pickman_locstock_shelf_idx'),
        ]

    @property
    def quantity(self) -> int:
        """Current quantity (cached)."""
        return self._quantity

    def ledger_total(self) -> int:
        """Signed sum of all ledger entries for this (product, shelf)."""
        from pickman.models.movement import StockMovement

        return StockMovement.objects.filter(
            product_id=self.product_id,
            shelf_id=self.shelf_id,
        ).aggregate(
            t=Coalesce(Sum('delta'), 0)
        )['t']

    def recalculate(self) -> int:
        """
        Recalculate quantity from the ledger.

        Use for integrity audit or correction after a detected inconsistency.

        Returns:
            New calculated quantity
        """
        total = self.ledger_total()

        if total != self._quantity:
            old = self._quantity
            self._quantity = total
            self.save(update_fields=['_quantity', 'updated_at'])

            logger.warning(
                "stock.location.recalculated",
                extra={
                    "location_stock_id": self.pk,
                    "old": old,
                    "new": total,
                    "diff": total - old,
                },
            )

        return total

    def __str__(self) -> str:
        return f"{self.product} [{self.shelf.code}]: {self._quantity}"
