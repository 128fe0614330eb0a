"""
Product model — What is stocked.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Product(models.Model):
    """
    Stocked product.

    Attributes are owned by the external product catalog; the fulfillment
    engine resolves order lines and scans to products by barcode.
    """

    sku = models.CharField(unique=True, max_length=100, verbose_name=_('SKU'))
    barcode = models.CharField(unique=True, max_length=100, verbose_name=_('Barcode'))
    name = models.CharField(max_length=255, verbose_name=_('Name'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Product')
        verbose_name_plural = _('Products')
        ordering = ['sku']

    def __str__(self) -> str:
        return f"{self.name} [{self.sku}]"
