"""
Stock queries — read-only operations, plus the ledger audit.

All read methods are classmethods and use no locking.
"""

import logging
from dataclasses import dataclass

from django.db import transaction
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce

from pickman.models.enums import ShelfClass
from pickman.models.location_stock import LocationStock
from pickman.models.movement import StockMovement
from pickman.models.product_stock import ProductStock
from pickman.projections import ProductAggregate, ShelfQuantity

logger = logging.getLogger('pickman')


@dataclass(frozen=True)
class Drift:
    """A cached quantity that disagrees with the ledger."""

    product_id: int
    field: str
    recorded: int
    expected: int
    shelf_id: int | None = None

    @property
    def diff(self) -> int:
        return self.expected - self.recorded


def to_shelf_quantity(location: LocationStock) -> ShelfQuantity:
    shelf = location.shelf
    return ShelfQuantity(
        shelf_id=shelf.pk,
        shelf_code=shelf.code,
        shelf_class=shelf.shelf_class,
        quantity=location.quantity,
        location=shelf.location,
        pick_sequence=shelf.pick_sequence,
    )


class StockQueries:
    """Read-only stock query methods."""

    @classmethod
    def get_location_stock(cls, product, shelf) -> int:
        """Quantity of product on shelf (0 when never stocked there)."""
        return LocationStock.objects.filter(product=product, shelf=shelf).values_list(
            '_quantity', flat=True,
        ).first() or 0

    @classmethod
    def get_product_aggregate(cls, product) -> ProductAggregate:
        """
        Roll-up quantities of a product.

        Returns a zeroed aggregate for products that never moved.
        """
        row = ProductStock.objects.filter(product=product).first()
        if row is None:
            return ProductAggregate(product_id=product.pk)
        return ProductAggregate(
            product_id=product.pk,
            on_hand=row.on_hand,
            sellable=row.sellable,
            reserved=row.reserved,
            committed=row.committed,
        )

    @classmethod
    def list_location_stock(cls, product=None, shelf=None, sellable: bool | None = None,
                            include_empty: bool = False) -> list[ShelfQuantity]:
        """
        Per-shelf quantities.

        Args:
            product: Restrict to one product
            shelf: Restrict to one shelf
            sellable: True = SELLABLE shelves only, False = all others, None = both
            include_empty: Include rows at zero

        Returns:
            Ordered by quantity (desc), then shelf code
        """
        qs = LocationStock.objects.select_related('shelf')
        if product is not None:
            qs = qs.for_product(product)
        if shelf is not None:
            qs = qs.at_shelf(shelf)
        if sellable is True:
            qs = qs.sellable()
        elif sellable is False:
            qs = qs.non_sellable()
        if not include_empty:
            qs = qs.in_stock()

        return [to_shelf_quantity(loc) for loc in qs.order_by('-_quantity', 'shelf__code')]

    @classmethod
    def recalculate(cls, product=None, dry_run: bool = False) -> list[Drift]:
        """
        Audit caches against the ledger and repair drift.

        Every LocationStock must equal the signed sum of its ledger entries;
        ProductStock.on_hand and .sellable must equal the sums of those
        entries over all shelves and over SELLABLE shelves.

        Args:
            product: Restrict the audit to one product
            dry_run: Report drift without writing

        Returns:
            Drift found (empty when the caches are healthy)
        """
        drifts: list[Drift] = []

        with transaction.atomic():
            locations = LocationStock.objects.select_for_update().order_by('pk')
            if product is not None:
                locations = locations.filter(product=product)

            for location in locations:
                expected = location.ledger_total()
                if expected != location.quantity:
                    drifts.append(Drift(
                        product_id=location.product_id,
                        shelf_id=location.shelf_id,
                        field='quantity',
                        recorded=location.quantity,
                        expected=expected,
                    ))
                    if not dry_run:
                        location.recalculate()

            movements = StockMovement.objects.all()
            if product is not None:
                movements = movements.filter(product=product)
            totals = movements.values('product_id').annotate(
                on_hand=Coalesce(Sum('delta'), 0),
                sellable=Coalesce(Sum('delta', filter=Q(shelf__shelf_class=ShelfClass.SELLABLE)), 0),
            )
            expected_by_product = {row['product_id']: row for row in totals}

            stocks = ProductStock.objects.select_for_update().order_by('pk')
            if product is not None:
                stocks = stocks.filter(product=product)

            for stock in stocks:
                row = expected_by_product.get(stock.product_id, {'on_hand': 0, 'sellable': 0})
                changed = []
                for field in ('on_hand', 'sellable'):
                    recorded = getattr(stock, field)
                    if recorded != row[field]:
                        drifts.append(Drift(
                            product_id=stock.product_id,
                            field=field,
                            recorded=recorded,
                            expected=row[field],
                        ))
                        setattr(stock, field, row[field])
                        changed.append(field)

                if changed and not dry_run:
                    stock.save(update_fields=changed + ['updated_at'])
                    logger.warning(
                        "stock.product.recalculated",
                        extra={"product_id": stock.product_id, "fields": changed},
                    )

        if drifts:
            logger.warning("stock.audit.drift", extra={"count": len(drifts), "dry_run": dry_run})
        else:
            logger.info("stock.audit.clean", extra={"dry_run": dry_run})
        return drifts
