"""
Management command to audit stock caches against the ledger.

Usage:
    python manage.py rebuild_stock
    python manage.py rebuild_stock --dry-run
    python manage.py rebuild_stock --sku SOAP-001

Run it after reclassifying a shelf: sellable totals are rebuilt from the
ledger with the current shelf classes.
"""

from django.core.management.base import BaseCommand, CommandError

from pickman import fulfillment
from pickman.models import Product


class Command(BaseCommand):
    """Rebuild LocationStock and ProductStock from the ledger."""

    help = 'Recalculates stock caches from the movement ledger'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report drift without fixing it'
        )
        parser.add_argument(
            '--sku',
            help='Restrict the audit to one product'
        )

    def handle(self, *args, **options):
        product = None
        if options['sku']:
            product = Product.objects.filter(sku=options['sku']).first()
            if product is None:
                raise CommandError(f"Unknown SKU: {options['sku']}")

        drifts = fulfillment.recalculate(product=product, dry_run=options['dry_run'])

        for drift in drifts:
            where = f" shelf={drift.shelf_id}" if drift.shelf_id else ''
            self.stdout.write(
                f"product={drift.product_id}{where} {drift.field}: "
                f"{drift.recorded} -> {drift.expected}"
            )

        if not drifts:
            self.stdout.write(self.style.SUCCESS('Stock is consistent with the ledger'))
        elif options['dry_run']:
            self.stdout.write(self.style.WARNING(f'{len(drifts)} drift(s) found'))
        else:
            self.stdout.write(self.style.SUCCESS(f'{len(drifts)} drift(s) fixed'))
