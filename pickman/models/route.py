"""
Route model — A batch of orders picked in one walk.
"""

from django.conf import settings
from django.db import models
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from pickman.models.enums import RouteStatus


class Route(models.Model):
    """
    Group of orders collected together.

    Scan state lives on the route: validated_shelf is the shelf the operator
    last scanned successfully, cleared whenever the next pending item sits
    on another shelf. Scans lock the route row, so one route is handled by
    one writer at a time.
    """

    code = models.CharField(
        unique=True,
        max_length=20,
        verbose_name=_('Code'),
        help_text=_('Sequential code (ex: R000001)'),
    )
    name = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Name'))
    description = models.TextField(blank=True, default='', verbose_name=_('Description'))
    status = models.CharField(
        max_length=20,
        choices=RouteStatus.choices,
        default=RouteStatus.COLLECTING,
        db_index=True,
        verbose_name=_('Status'),
    )

    validated_shelf = models.ForeignKey(
        'pickman.Shelf',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Validated shelf'),
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Created by'),
    )
    created_at = models.DateTimeField(default=timezone.now)
    ready_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = _('Route')
        verbose_name_plural = _('Routes')
        ordering = ['-created_at']

    @property
    def order_ids(self) -> list[str]:
        """Member orders in route sequence."""
        seen = []
        for order_id in self.lines.order_by('sequence', 'pk').values_list('order_id', flat=True):
            if order_id not in seen:
                seen.append(order_id)
        return seen

    @property
    def has_progress(self) -> bool:
        return self.lines.filter(picked_quantity__gt=0).exists()

    @property
    def picked_quantity(self) -> int:
        return self.lines.aggregate(t=Coalesce(Sum('picked_quantity'), 0))['t']

    @property
    def total_quantity(self) -> int:
        return self.lines.aggregate(t=Coalesce(Sum('quantity'), 0))['t']

    def __str__(self) -> str:
        return f"{self.code} ({self.status})"


class RouteLine(models.Model):
    """
    One order's need for one barcode inside a route.

    picked_quantity is the order line's own picked counter; the pick list
    shown to operators is a projection over these rows.
    """

    route = models.ForeignKey(
        Route,
        on_delete=models.CASCADE,
        related_name='lines',
        verbose_name=_('Route'),
    )
    order_id = models.CharField(max_length=100, verbose_name=_('Order ID'))
    order_number = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Order number'))
    sequence = models.PositiveIntegerField(
        verbose_name=_('Sequence'),
        help_text=_('Position of the order in the route. Lower sequences are filled first.'),
    )
    barcode = models.CharField(max_length=100, verbose_name=_('Barcode'))
    product = models.ForeignKey(
        'pickman.Product',
        on_delete=models.PROTECT,
        related_name='route_lines',
        verbose_name=_('Product'),
    )
    quantity = models.PositiveIntegerField(verbose_name=_('Quantity'))
    picked_quantity = models.PositiveIntegerField(default=0, verbose_name=_('Picked'))

    class Meta:
        verbose_name = _('Route line')
        verbose_name_plural = _('Route lines')
        ordering = ['route', 'sequence', 'pk']
        constraints = [
            models.UniqueConstraint(
                fields=['route', 'order_id', 'barcode'],
                name='unique_route_order_barcode',
            ),
            models.CheckConstraint(
                condition=models.Q(picked_quantity__lte=models.F('quantity')),
                name='route_line_picked_within_quantity',
            ),
        ]

    @property
    def remaining(self) -> int:
        return self.quantity - self.picked_quantity

    @property
    def is_complete(self) -> bool:
        return self.picked_quantity >= self.quantity

    def __str__(self) -> str:
        return f"{self.route.code} #{self.order_number or self.order_id} {self.barcode}: {self.picked_quantity}/{self.quantity}"
