"""
Pickman Admin.

- Warehouse, Shelf, Product: editable configuration
- LocationStock, ProductStock: read-only (stock only changes via the ledger)
- StockMovement: read-only audit trail
- Route: read-only with lines inline and a "cancel" action
- ReturnItem: read-only with a "restock" action
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from pickman.exceptions import PickingError, StockError
from pickman.models import (
    LocationStock,
    Product,
    ProductStock,
    ReturnItem,
    ReturnStatus,
    Route,
    RouteLine,
    RouteStatus,
    Shelf,
    StockMovement,
    Warehouse,
)

logger = logging.getLogger(__name__)


class ReadOnlyAdminMixin:
    """No add, change or delete through the admin."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# CONFIGURATION (editable)
# =========================================================================

class ShelfInline(admin.TabularInline):
    model = Shelf
    extra = 0
    fields = ['code', 'name', 'location', 'shelf_class', 'pick_sequence']


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'created_at']
    search_fields = ['code', 'name']
    inlines = [ShelfInline]


@admin.register(Shelf)
class ShelfAdmin(admin.ModelAdmin):
    """Shelf admin — editable. Run rebuild_stock after changing shelf_class."""

    list_display = ['code', 'name', 'warehouse', 'shelf_class', 'location', 'pick_sequence']
    list_filter = ['warehouse', 'shelf_class']
    search_fields = ['code', 'name', 'location']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['warehouse', 'pick_sequence', 'code']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['sku', 'barcode', 'name']
    search_fields = ['sku', 'barcode', 'name']
    readonly_fields = ['created_at', 'updated_at']


# =========================================================================
# STOCK (read-only)
# =========================================================================

@admin.register(LocationStock)
class LocationStockAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['product', 'shelf', 'quantity_display', 'updated_at']
    list_filter = ['shelf__shelf_class', 'shelf__warehouse']
    search_fields = ['product__sku', 'product__barcode', 'shelf__code']
    list_select_related = ['product', 'shelf']

    @admin.display(description=_('Quantity'), ordering='_quantity')
    def quantity_display(self, obj):
        return obj.quantity


@admin.register(ProductStock)
class ProductStockAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['product', 'on_hand', 'sellable', 'reserved', 'committed', 'updated_at']
    search_fields = ['product__sku', 'product__barcode', 'product__name']
    list_select_related = ['product']


@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Immutable audit trail."""

    list_display = ['timestamp', 'movement_type', 'direction', 'product', 'shelf',
                    'delta', 'quantity_before', 'quantity_after', 'route', 'user']
    list_filter = ['movement_type', 'direction', 'shelf__shelf_class']
    search_fields = ['product__sku', 'product__barcode', 'shelf__code', 'order_reference', 'note']
    list_select_related = ['product', 'shelf', 'route', 'user']
    date_hierarchy = 'timestamp'


# =========================================================================
# ROUTES
# =========================================================================

class RouteLineInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = RouteLine
    extra = 0
    fields = ['sequence', 'order_number', 'barcode', 'product', 'quantity', 'picked_quantity']
    readonly_fields = fields


@admin.register(Route)
class RouteAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['code', 'name', 'status', 'progress_display', 'created_by', 'created_at']
    list_filter = ['status']
    search_fields = ['code', 'name', 'lines__order_id', 'lines__order_number']
    inlines = [RouteLineInline]
    actions = ['cancel_routes']

    @admin.display(description=_('Picked'))
    def progress_display(self, obj):
        return f"{obj.picked_quantity}/{obj.total_quantity}"

    @admin.action(description=_('Cancel selected routes'))
    def cancel_routes(self, request, queryset):
        from pickman import fulfillment

        count = 0
        for route in queryset.filter(status=RouteStatus.COLLECTING):
            try:
                fulfillment.cancel_route(route, user=request.user)
                count += 1
            except PickingError as exc:
                logger.warning("cancel_routes: failed to cancel %s: %s", route.code, exc)

        self.message_user(request, _('{count} route(s) cancelled.').format(count=count))


# =========================================================================
# RETURNS
# =========================================================================

@admin.register(ReturnItem)
class ReturnItemAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['id', 'barcode', 'quantity', 'condition', 'status', 'product', 'created_at']
    list_filter = ['status', 'condition']
    search_fields = ['barcode', 'order_reference']
    actions = ['restock_returns']

    @admin.action(description=_('Restock selected returns'))
    def restock_returns(self, request, queryset):
        from pickman import fulfillment

        count = 0
        for item in queryset.filter(status=ReturnStatus.RESOLVED):
            try:
                fulfillment.restock_return(item, user=request.user)
                count += 1
            except StockError as exc:
                logger.warning("restock_returns: failed to restock %s: %s", item.pk, exc)

        self.message_user(request, _('{count} return(s) restocked.').format(count=count))
