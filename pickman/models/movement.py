"""
StockMovement model — Immutable ledger of quantity changes.
"""

from django.conf import settings
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from pickman.models.enums import MovementDirection, MovementType


class StockMovement(models.Model):
    """
    Immutable record of a quantity change on one shelf.

    Rules:
    - NEVER update() or delete()
    - Corrections are new CANCEL movements with the opposite direction
    - Updates LocationStock and ProductStock atomically on save()

    This is the ONLY model that changes on-hand quantities.
    """

    product = models.ForeignKey(
        'pickman.Product',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Product'),
    )
    shelf = models.ForeignKey(
        'pickman.Shelf',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Shelf'),
        help_text=_('Shelf whose quantity this entry changes'),
    )
    delta = models.IntegerField(
        verbose_name=_('Delta'),
        help_text=_('Positive = IN, negative = OUT'),
    )
    movement_type = models.CharField(
        max_length=20,
        choices=MovementType.choices,
        db_index=True,
        verbose_name=_('Type'),
    )
    direction = models.CharField(
        max_length=3,
        choices=MovementDirection.choices,
        verbose_name=_('Direction'),
    )

    # Where the goods came from / went to (context for transfers and picks)
    source_shelf = models.ForeignKey(
        'pickman.Shelf',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Source shelf'),
    )
    target_shelf = models.ForeignKey(
        'pickman.Shelf',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Target shelf'),
    )

    # References
    route = models.ForeignKey(
        'pickman.Route',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='movements',
        verbose_name=_('Route'),
    )
    order_reference = models.CharField(
        max_length=100,
        blank=True,
        default='',
        verbose_name=_('Order reference'),
    )
    reverses = models.OneToOneField(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='reversal',
        verbose_name=_('Reverses'),
    )

    # Location snapshot for the audit trail
    quantity_before = models.IntegerField(default=0, verbose_name=_('Quantity before'))
    quantity_after = models.IntegerField(default=0, verbose_name=_('Quantity after'))

    note = models.TextField(blank=True, default='', verbose_name=_('Note'))
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadata'))

    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Timestamp'))
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        verbose_name=_('User'),
    )

    class Meta:
        verbose_name = _('Stock movement')
        verbose_name_plural = _('Stock movements')
        ordering = ['timestamp', 'pk']
        indexes = [
            models.Index(fields=['product', 'shelf', 'timestamp'], name='pickman_move_prod_shelf_ts_idx'),
            models.Index(fields=['route', 'movement_type'], name='pickman_move_route_type_idx'),
        ]

    @property
    def quantity(self) -> int:
        return abs(self.delta)

    def save(self, *args, **kwargs):
        """Save movement and update stock caches atomically."""
        if self.pk:
            raise ValueError(
                "Stock movements are immutable. "
                "To correct one, record a CANCEL movement."
            )

        if self.delta == 0:
            raise ValueError("Movement delta cannot be zero")
        expected = MovementDirection.IN if self.delta > 0 else MovementDirection.OUT
        if self.direction != expected:
            raise ValueError(f"Direction {self.direction} does not match delta {self.delta}")

        with transaction.atomic():
            super().save(*args, **kwargs)

            # Import here to avoid circular import
            from pickman.models.location_stock import LocationStock
            from pickman.models.product_stock import ProductStock

            now = timezone.now()
            location, _ = LocationStock.objects.get_or_create(
                product_id=self.product_id,
                shelf_id=self.shelf_id,
            )
            LocationStock.objects.filter(pk=location.pk).update(
                _quantity=F('_quantity') + self.delta,
                updated_at=now,
            )

            ProductStock.objects.get_or_create(product_id=self.product_id)
            changes = {'on_hand': F('on_hand') + self.delta, 'updated_at': now}
            if self.shelf.is_sellable:
                changes['sellable'] = F('sellable') + self.delta
            ProductStock.objects.filter(product_id=self.product_id).update(**changes)

    def delete(self, *args, **kwargs):
        """Movements are immutable and cannot be deleted."""
        raise ValueError(
            "Stock movements are immutable. "
            "To reverse one, record a CANCEL movement."
        )

    def __str__(self) -> str:
        sign = '+' if self.delta > 0 else ''
        return f"{self.movement_type} {sign}{self.delta} @ {self.shelf.code}"
