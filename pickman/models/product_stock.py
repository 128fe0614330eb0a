"""
ProductStock model — Per-product roll-up of stock states.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ProductStock(models.Model):
    """
    Aggregate quantities of a product across all shelves.

    - on_hand:   sum of all LocationStock rows
    - sellable:  sum of LocationStock rows on SELLABLE shelves
    - reserved:  earmarked by open routes, not yet picked
    - committed: picked, not yet shipped

    on_hand and sellable are written only by StockMovement.save();
    reserved and committed only by StockReservations. Nothing else
    touches this table.
    """

    product = models.OneToOneField(
        'pickman.Product',
        on_delete=models.PROTECT,
        related_name='stock',
        verbose_name=_('Product'),
    )
    on_hand = models.IntegerField(default=0, verbose_name=_('On hand'))
    sellable = models.IntegerField(default=0, verbose_name=_('Sellable'))
    reserved = models.IntegerField(default=0, verbose_name=_('Reserved'))
    committed = models.IntegerField(default=0, verbose_name=_('Committed'))

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Product stock')
        verbose_name_plural = _('Product stocks')
        constraints = [
            models.CheckConstraint(
                condition=models.Q(on_hand__gte=0) & models.Q(sellable__gte=0)
                & models.Q(reserved__gte=0) & models.Q(committed__gte=0),
                name='product_stock_not_negative',
            ),
            models.CheckConstraint(
                condition=models.Q(sellable__lte=models.F('on_hand')),
                name='product_stock_sellable_within_on_hand',
            ),
        ]

    def __str__(self) -> str:
        return (
            f"{self.product}: on_hand={self.on_hand} sellable={self.sellable} "
            f"reserved={self.reserved} committed={self.committed}"
        )
