"""
Transfer advisory — tells operators when stock sits on the wrong shelves.

A route can hold enough stock in total while part of it is on RECEIVING,
RETURN or TRANSIT shelves. Picking only happens from SELLABLE shelves, so
the advisory lists what has to be transferred first.
"""

import logging
from collections.abc import Iterable

from pickman.models.location_stock import LocationStock
from pickman.models.product_stock import ProductStock
from pickman.projections import Availability, PickingItem, Shortfall, required_by_product
from pickman.services.queries import to_shelf_quantity

logger = logging.getLogger('pickman')


class TransferAdvisory:
    """Sellable-stock checks for routes."""

    @classmethod
    def shortfalls_for(cls, items: Iterable[PickingItem]) -> tuple[Shortfall, ...]:
        """
        Products whose pending quantity exceeds sellable stock.

        Each shortfall carries the non-sellable shelves holding the product,
        largest first, as transfer candidates.
        """
        items = list(items)
        required = required_by_product(items)
        if not required:
            return ()

        stocks = {
            row.product_id: row
            for row in ProductStock.objects.filter(product_id__in=required)
        }
        first_item = {}
        for item in items:
            first_item.setdefault(item.product_id, item)

        shortfalls = []
        for product_id, quantity in required.items():
            row = stocks.get(product_id)
            sellable = row.sellable if row else 0
            if quantity <= sellable:
                continue

            candidates = LocationStock.objects.non_sellable().in_stock().filter(
                product_id=product_id,
            ).select_related('shelf').order_by('-_quantity', 'shelf__code')

            item = first_item[product_id]
            shortfalls.append(Shortfall(
                product_id=product_id,
                barcode=item.barcode,
                product_name=item.product_name,
                required=quantity,
                available_sellable=sellable,
                available_non_sellable=(row.on_hand - row.sellable) if row else 0,
                candidate_shelves=tuple(to_shelf_quantity(loc) for loc in candidates),
            ))

        return tuple(sorted(shortfalls, key=lambda s: (s.product_name, s.barcode)))

    @classmethod
    def check_transfer_requirement(cls, route) -> Availability:
        """
        Whether a route can be picked from sellable stock as it stands.

        Args:
            route: Route instance or pk

        Returns:
            Availability; .ok is False with one Shortfall per short product

        Raises:
            PickingError('ROUTE_NOT_FOUND'): If the route does not exist
        """
        from pickman.services.routes import RouteAggregator

        route = RouteAggregator.get_route(route)
        items = RouteAggregator.build_items(route)
        availability = Availability(shortfalls=cls.shortfalls_for(items))

        if not availability.ok:
            logger.info(
                "route.transfer_required",
                extra={
                    "route": route.code,
                    "products": [s.product_id for s in availability.shortfalls],
                },
            )
        return availability
