"""
Initial migration for Pickman models.
"""

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


SHELF_CLASSES = [
    ('RECEIVING', 'Receiving'),
    ('SELLABLE', 'Sellable'),
    ('RETURN_NORMAL', 'Return'),
    ('RETURN_DAMAGED', 'Return (damaged)'),
    ('TRANSIT', 'In transit'),
]

MOVEMENT_TYPES = [
    ('PICKING', 'Picking'),
    ('PACKING_IN', 'Packing in'),
    ('PACKING_OUT', 'Packing out'),
    ('RECEIVING', 'Receiving'),
    ('TRANSFER', 'Transfer'),
    ('ADJUSTMENT', 'Adjustment'),
    ('RETURN', 'Return'),
    ('CANCEL', 'Cancel'),
]


class Migration(migrations.Migration):
    """Create Pickman models: Warehouse, Shelf, Product, ledger, stock caches, routes, returns."""

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Warehouse',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.SlugField(unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Warehouse',
                'verbose_name_plural': 'Warehouses',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Shelf',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(help_text='Printed on the shelf label and scanned by pickers', max_length=100, unique=True, verbose_name='Barcode')),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('location', models.CharField(blank=True, default='', help_text='Display path shown to pickers (ex: A > 09 > 2)', max_length=255, verbose_name='Location')),
                ('shelf_class', models.CharField(choices=SHELF_CLASSES, default='SELLABLE', max_length=20, verbose_name='Class')),
                ('pick_sequence', models.PositiveIntegerField(blank=True, help_text='Global slot. Pick lists walk shelves in ascending order.', null=True, verbose_name='Pick sequence')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='shelves', to='pickman.warehouse', verbose_name='Warehouse')),
            ],
            options={
                'verbose_name': 'Shelf',
                'verbose_name_plural': 'Shelves',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sku', models.CharField(max_length=100, unique=True, verbose_name='SKU')),
                ('barcode', models.CharField(max_length=100, unique=True, verbose_name='Barcode')),
                ('name', models.CharField(max_length=255, verbose_name='Name')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Product',
                'verbose_name_plural': 'Products',
                'ordering': ['sku'],
            },
        ),
        migrations.CreateModel(
            name='Route',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(help_text='Sequential code (ex: R000001)', max_length=20, unique=True, verbose_name='Code')),
                ('name', models.CharField(blank=True, default='', max_length=100, verbose_name='Name')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('status', models.CharField(choices=[('COLLECTING', 'Collecting'), ('READY', 'Ready'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], db_index=True, default='COLLECTING', max_length=20, verbose_name='Status')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('ready_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Created by')),
                ('validated_shelf', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='pickman.shelf', verbose_name='Validated shelf')),
            ],
            options={
                'verbose_name': 'Route',
                'verbose_name_plural': 'Routes',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='RouteLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_id', models.CharField(max_length=100, verbose_name='Order ID')),
                ('order_number', models.CharField(blank=True, default='', max_length=100, verbose_name='Order number')),
                ('sequence', models.PositiveIntegerField(help_text='Position of the order in the route. Lower sequences are filled first.', verbose_name='Sequence')),
                ('barcode', models.CharField(max_length=100, verbose_name='Barcode')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantity')),
                ('picked_quantity', models.PositiveIntegerField(default=0, verbose_name='Picked')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='route_lines', to='pickman.product', verbose_name='Product')),
                ('route', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='pickman.route', verbose_name='Route')),
            ],
            options={
                'verbose_name': 'Route line',
                'verbose_name_plural': 'Route lines',
                'ordering': ['route', 'sequence', 'pk'],
                'constraints': [
                    models.UniqueConstraint(fields=('route', 'order_id', 'barcode'), name='unique_route_order_barcode'),
                    models.CheckConstraint(condition=models.Q(('picked_quantity__lte', models.F('quantity'))), name='route_line_picked_within_quantity'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('delta', models.IntegerField(help_text='Positive = IN, negative = OUT', verbose_name='Delta')),
                ('movement_type', models.CharField(choices=MOVEMENT_TYPES, db_index=True, max_length=20, verbose_name='Type')),
                ('direction', models.CharField(choices=[('IN', 'In'), ('OUT', 'Out')], max_length=3, verbose_name='Direction')),
                ('order_reference', models.CharField(blank=True, default='', max_length=100, verbose_name='Order reference')),
                ('quantity_before', models.IntegerField(default=0, verbose_name='Quantity before')),
                ('quantity_after', models.IntegerField(default=0, verbose_name='Quantity after')),
                ('note', models.TextField(blank=True, default='', verbose_name='Note')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadata')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Timestamp')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='pickman.product', verbose_name='Product')),
                ('shelf', models.ForeignKey(help_text='Shelf whose quantity this entry changes', on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='pickman.shelf', verbose_name='Shelf')),
                ('source_shelf', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='pickman.shelf', verbose_name='Source shelf')),
                ('target_shelf', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='pickman.shelf', verbose_name='Target shelf')),
                ('route', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='pickman.route', verbose_name='Route')),
                ('reverses', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='reversal', to='pickman.stockmovement', verbose_name='Reverses')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL, verbose_name='User')),
            ],
            options={
                'verbose_name': 'Stock movement',
                'verbose_name_plural': 'Stock movements',
                'ordering': ['timestamp', 'pk'],
                'indexes': [
                    models.Index(fields=['product', 'shelf', 'timestamp'], name='pickman_move_prod_shelf_ts_idx'),
                    models.Index(fields=['route', 'movement_type'], name='pickman_move_route_type_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LocationStock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('_quantity', models.IntegerField(default=0, verbose_name='Quantity')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='location_stocks', to='pickman.product', verbose_name='Product')),
                ('shelf', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='stocks', to='pickman.shelf', verbose_name='Shelf')),
            ],
            options={
                'verbose_name': 'Location stock',
                'verbose_name_plural': 'Location stocks',
                'indexes': [
                    models.Index(fields=['shelf', 'product'], name='pickman_locstock_shelf_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('product', 'shelf'), name='unique_location_stock'),
                    models.CheckConstraint(condition=models.Q(('_quantity__gte', 0)), name='location_stock_not_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ProductStock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('on_hand', models.IntegerField(default=0, verbose_name='On hand')),
                ('sellable', models.IntegerField(default=0, verbose_name='Sellable')),
                ('reserved', models.IntegerField(default=0, verbose_name='Reserved')),
                ('committed', models.IntegerField(default=0, verbose_name='Committed')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='stock', to='pickman.product', verbose_name='Product')),
            ],
            options={
                'verbose_name': 'Product stock',
                'verbose_name_plural': 'Product stocks',
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('on_hand__gte', 0), ('sellable__gte', 0), ('reserved__gte', 0), ('committed__gte', 0)), name='product_stock_not_negative'),
                    models.CheckConstraint(condition=models.Q(('sellable__lte', models.F('on_hand'))), name='product_stock_sellable_within_on_hand'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReturnItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('barcode', models.CharField(max_length=100, verbose_name='Barcode')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantity')),
                ('condition', models.CharField(choices=[('NORMAL', 'Normal'), ('DAMAGED', 'Damaged')], default='NORMAL', max_length=20, verbose_name='Condition')),
                ('order_reference', models.CharField(blank=True, default='', max_length=100, verbose_name='Order reference')),
                ('status', models.CharField(choices=[('UNRESOLVED', 'Unresolved'), ('RESOLVED', 'Resolved'), ('RESTOCKED', 'Restocked')], db_index=True, default='UNRESOLVED', max_length=20, verbose_name='Status')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('restocked_at', models.DateTimeField(blank=True, null=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('movement', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='return_item', to='pickman.stockmovement', verbose_name='Restock movement')),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='returns', to='pickman.product', verbose_name='Product')),
            ],
            options={
                'verbose_name': 'Return item',
                'verbose_name_plural': 'Return items',
                'ordering': ['created_at'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(models.Q(('product__isnull', True), ('status', 'UNRESOLVED')), models.Q(models.Q(('status', 'UNRESOLVED'), _negated=True), ('product__isnull', False)), _connector='OR'), name='return_item_product_matches_status'),
                ],
            },
        ),
    ]
