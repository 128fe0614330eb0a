"""
ReturnItem model — Goods coming back from customers.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from pickman.models.enums import ReturnCondition, ReturnStatus


class ReturnItem(models.Model):
    """
    A returned item waiting to go back on a shelf.

    LIFECYCLE:

        UNRESOLVED --resolve_product()--> RESOLVED --restock_return()--> RESTOCKED

    An item is registered with the barcode printed on the package. When the
    barcode matches a product, resolution happens on registration; otherwise
    the item stays UNRESOLVED until someone links it explicitly. The product
    link is only ever set by that resolution step (enforced by a constraint).
    """

    barcode = models.CharField(max_length=100, verbose_name=_('Barcode'))
    quantity = models.PositiveIntegerField(verbose_name=_('Quantity'))
    condition = models.CharField(
        max_length=20,
        choices=ReturnCondition.choices,
        default=ReturnCondition.NORMAL,
        verbose_name=_('Condition'),
    )
    order_reference = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Order reference'))

    status = models.CharField(
        max_length=20,
        choices=ReturnStatus.choices,
        default=ReturnStatus.UNRESOLVED,
        db_index=True,
        verbose_name=_('Status'),
    )
    product = models.ForeignKey(
        'pickman.Product',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='returns',
        verbose_name=_('Product'),
    )
    movement = models.OneToOneField(
        'pickman.StockMovement',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='return_item',
        verbose_name=_('Restock movement'),
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    created_at = models.DateTimeField(default=timezone.now)
    resolved_at = models.DateTimeField(null=True, blank=True)
    restocked_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = _('Return item')
        verbose_name_plural = _('Return items')
        ordering = ['created_at']
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(status=ReturnStatus.UNRESOLVED, product__isnull=True)
                    | (~models.Q(status=ReturnStatus.UNRESOLVED) & models.Q(product__isnull=False))
                ),
                name='return_item_product_matches_status',
            ),
        ]

    @property
    def is_resolved(self) -> bool:
        return self.status != ReturnStatus.UNRESOLVED

    def __str__(self) -> str:
        return f"{self.quantity}x {self.barcode} ({self.status})"
