"""
Warehouse and Shelf models — Where stock exists.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from pickman.models.enums import ShelfClass


class Warehouse(models.Model):
    """A building holding shelves. Configuration data, edited via admin."""

    code = models.SlugField(unique=True, max_length=50, verbose_name=_('Code'))
    name = models.CharField(max_length=100, verbose_name=_('Name'))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Warehouse')
        verbose_name_plural = _('Warehouses')
        ordering = ['code']

    def __str__(self) -> str:
        return self.name


class Shelf(models.Model):
    """
    A scannable storage location.

    Shelves are stable entities maintained by warehouse configuration.
    The fulfillment engine only reads them.

    Examples:
        Shelf.objects.create(code='A-09-2', name='A9-2', location='A > 09 > 2',
                             shelf_class=ShelfClass.SELLABLE, warehouse=main, pick_sequence=92)
        Shelf.objects.create(code='RD-01', name='Damaged returns',
                             shelf_class=ShelfClass.RETURN_DAMAGED, warehouse=main)
    """

    warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.PROTECT,
        related_name='shelves',
        verbose_name=_('Warehouse'),
    )
    code = models.CharField(
        unique=True,
        max_length=100,
        verbose_name=_('Barcode'),
        help_text=_('Printed on the shelf label and scanned by pickers'),
    )
    name = models.CharField(max_length=100, verbose_name=_('Name'))
    location = models.CharField(
        max_length=255,
        blank=True,
        default='',
        verbose_name=_('Location'),
        help_text=_('Display path shown to pickers (ex: A > 09 > 2)'),
    )
    shelf_class = models.CharField(
        max_length=20,
        choices=ShelfClass.choices,
        default=ShelfClass.SELLABLE,
        verbose_name=_('Class'),
    )
    pick_sequence = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name=_('Pick sequence'),
        help_text=_('Global slot. Pick lists walk shelves in ascending order.'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Shelf')
        verbose_name_plural = _('Shelves')
        ordering = ['code']

    @property
    def is_sellable(self) -> bool:
        """Does stock here count as sellable?"""
        return self.shelf_class == ShelfClass.SELLABLE

    @property
    def display_location(self) -> str:
        return self.location or self.name

    def __str__(self) -> str:
        return f"{self.code} ({self.get_shelf_class_display()})"
