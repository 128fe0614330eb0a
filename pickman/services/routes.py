"""
Route aggregation — route lifecycle and pick-list projection.

LIFECYCLE:

    COLLECTING --(all picked)--> READY --complete_route()--> COMPLETED
        |
        +--cancel_route() (nothing picked)--> CANCELLED

Reservations follow the route: create reserves, a pick commits, cancel
releases reserved, complete releases committed. The Order Service is told
about membership changes only after the transaction commits.
"""

import logging
from functools import partial

from django.db import IntegrityError, transaction
from django.utils import timezone

from pickman.adapters.orders import get_order_backend
from pickman.conf import pickman_settings
from pickman.exceptions import PickingError
from pickman.models.enums import ACTIVE_ROUTE_STATUSES, ROUTE_TRANSITIONS, RouteStatus
from pickman.models.location_stock import LocationStock
from pickman.models.product import Product
from pickman.models.route import Route, RouteLine
from pickman.projections import PickingItem, PickingProgress, build_picking_items, choose_pick_shelf
from pickman.services.advisory import TransferAdvisory
from pickman.services.queries import to_shelf_quantity
from pickman.services.reservations import StockReservations

logger = logging.getLogger('pickman')


def _not_pickable(order_id, reason, **data) -> PickingError:
    logger.info("route.order_rejected", extra={"order_id": order_id, "reason": reason, **data})
    return PickingError('ORDER_NOT_PICKABLE', order_id=order_id, reason=reason, **data)


class RouteAggregator:
    """Route lifecycle methods."""

    # ══════════════════════════════════════════════════════════════
    # LOOKUP / PROJECTION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def get_route(cls, route, lock: bool = False) -> Route:
        """
        Resolve a Route instance or pk.

        Raises:
            PickingError('ROUTE_NOT_FOUND'): If it does not exist
        """
        pk = route.pk if isinstance(route, Route) else route
        qs = Route.objects.select_for_update() if lock else Route.objects.all()
        try:
            return qs.select_related('validated_shelf').get(pk=pk)
        except (Route.DoesNotExist, ValueError, TypeError):
            raise PickingError('ROUTE_NOT_FOUND', route_id=pk) from None

    @classmethod
    def build_items(cls, route: Route) -> tuple[PickingItem, ...]:
        """Pick list of a route, grouped per barcode, in walk order."""
        lines = list(route.lines.select_related('product').order_by('sequence', 'pk'))
        product_ids = {line.product_id for line in lines}

        by_product: dict[int, list] = {}
        locations = LocationStock.objects.sellable().in_stock().filter(
            product_id__in=product_ids,
        ).select_related('shelf')
        for location in locations:
            by_product.setdefault(location.product_id, []).append(to_shelf_quantity(location))

        shelves = {
            pid: choose_pick_shelf(by_product.get(pid, ()), route.validated_shelf_id)
            for pid in product_ids
        }

        return build_picking_items(
            (
                {
                    'barcode': line.barcode,
                    'product_id': line.product_id,
                    'product_name': line.product.name,
                    'order_id': line.order_id,
                    'order_number': line.order_number,
                    'sequence': line.sequence,
                    'quantity': line.quantity,
                    'picked_quantity': line.picked_quantity,
                }
                for line in lines
            ),
            shelves,
        )

    @classmethod
    def get_picking_progress(cls, route) -> PickingProgress:
        """
        Pick list with completion state.

        Shortfalls are only computed while the route is COLLECTING.

        Raises:
            PickingError('ROUTE_NOT_FOUND'): If the route does not exist
        """
        route = cls.get_route(route)
        return cls._progress(route)

    @classmethod
    def _progress(cls, route: Route) -> PickingProgress:
        items = cls.build_items(route)
        shortfalls = ()
        if route.status == RouteStatus.COLLECTING:
            shortfalls = TransferAdvisory.shortfalls_for(items)
        return PickingProgress(
            route_id=route.pk,
            route_code=route.code,
            status=route.status,
            items=items,
            total_orders=len({share.order_id for item in items for share in item.orders}),
            shortfalls=shortfalls,
        )

    # ══════════════════════════════════════════════════════════════
    # LIFECYCLE
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_route(cls, order_ids, name: str = '', description: str = '', user=None) -> Route:
        """
        Group pickable orders into a new COLLECTING route.

        Duplicate ids are collapsed keeping the first occurrence; the
        remaining position of each order is its sequence in the route.

        Raises:
            PickingError('EMPTY_ORDER_SET'): If no order id is given
            PickingError('ORDER_NOT_PICKABLE'): If an order is unknown, not in a
                pickable status, already on an active route, has no lines, or
                references an unknown barcode
            StockError('INSUFFICIENT_STOCK'): If on-hand stock cannot cover the
                reservations

        Concurrency:
            Runs under transaction.atomic() holding the ProductStock rows of
            every routed product, locked in product id order. The active
            route check and the reservations happen under those locks.
        """
        order_ids = list(dict.fromkeys(str(oid) for oid in (order_ids or ())))
        if not order_ids:
            raise PickingError('EMPTY_ORDER_SET')

        backend = get_order_backend()
        orders = backend.get_orders(order_ids)
        pickable = set(pickman_settings.PICKABLE_ORDER_STATUSES)

        for order_id in order_ids:
            order = orders.get(order_id)
            if order is None:
                raise _not_pickable(order_id, 'not_found')
            if order.status not in pickable:
                raise _not_pickable(order_id, 'status', status=order.status)
            if not order.lines:
                raise _not_pickable(order_id, 'no_lines')
            for line in order.lines:
                if not isinstance(line.quantity, int) or line.quantity <= 0:
                    raise _not_pickable(order_id, 'invalid_quantity', barcode=line.barcode)

        barcodes = {line.barcode for oid in order_ids for line in orders[oid].lines}
        products = Product.objects.in_bulk(barcodes, field_name='barcode')
        for order_id in order_ids:
            for line in orders[order_id].lines:
                if line.barcode not in products:
                    raise _not_pickable(order_id, 'unknown_barcode', barcode=line.barcode)

        with transaction.atomic():
            # Routes sharing an order share its products: their stock rows
            # serialize the membership check below.
            StockReservations.lock(products.values())

            routed = RouteLine.objects.filter(
                order_id__in=order_ids,
                route__status__in=ACTIVE_ROUTE_STATUSES,
            ).values_list('order_id', 'route__code').first()
            if routed:
                raise _not_pickable(routed[0], 'already_routed', route=routed[1])

            route = cls._create_numbered(name=name, description=description, created_by=user)
            code = route.code

            merged: dict[tuple[str, str], int] = {}
            for order_id in order_ids:
                for line in orders[order_id].lines:
                    key = (order_id, line.barcode)
                    merged[key] = merged.get(key, 0) + line.quantity

            sequence = {oid: idx for idx, oid in enumerate(order_ids, start=1)}
            RouteLine.objects.bulk_create([
                RouteLine(
                    route=route,
                    order_id=order_id,
                    order_number=orders[order_id].order_number or order_id,
                    sequence=sequence[order_id],
                    barcode=barcode,
                    product=products[barcode],
                    quantity=quantity,
                )
                for (order_id, barcode), quantity in merged.items()
            ])

            for product, quantity in cls._totals(merged, products):
                StockReservations.reserve(product, quantity)

            transaction.on_commit(partial(backend.route_assigned, list(order_ids), code))

        logger.info(
            "route.created",
            extra={"route": code, "orders": order_ids, "lines": len(merged)},
        )
        return route

    @classmethod
    def cancel_route(cls, route, user=None) -> Route:
        """
        Cancel a COLLECTING route with nothing picked.

        Releases reservations and hands the orders back (WAITING_PICKING).

        Raises:
            PickingError('ROUTE_NOT_FOUND'): If the route does not exist
            PickingError('INVALID_ROUTE_TRANSITION'): If the route is not COLLECTING
            PickingError('ROUTE_NOT_CANCELLABLE'): If any unit was picked
        """
        with transaction.atomic():
            route = cls.get_route(route, lock=True)
            cls._check_transition(route, RouteStatus.CANCELLED)
            if route.has_progress:
                logger.info("route.cancel_rejected", extra={"route": route.code})
                raise PickingError('ROUTE_NOT_CANCELLABLE', route=route.code,
                                   picked=route.picked_quantity)

            lines = list(route.lines.select_related('product'))
            for product, quantity in cls._line_totals(lines, 'quantity'):
                StockReservations.release_reserved(product, quantity)

            order_ids = route.order_ids
            route.status = RouteStatus.CANCELLED
            route.cancelled_at = timezone.now()
            route.validated_shelf = None
            route.save(update_fields=['status', 'cancelled_at', 'validated_shelf'])

            backend = get_order_backend()
            transaction.on_commit(partial(backend.route_released, order_ids, route.code))

        logger.info(
            "route.cancelled",
            extra={"route": route.code, "user": getattr(user, 'pk', None)},
        )
        return route

    @classmethod
    def complete_route(cls, route, user=None) -> Route:
        """
        Hand a READY route over to packing.

        Committed stock for the route is released; the ledger already holds
        the PICKING entries, so nothing is written there.

        Raises:
            PickingError('ROUTE_NOT_FOUND'): If the route does not exist
            PickingError('INVALID_ROUTE_TRANSITION'): If the route is not READY
        """
        with transaction.atomic():
            route = cls.get_route(route, lock=True)
            cls._check_transition(route, RouteStatus.COMPLETED)

            lines = list(route.lines.select_related('product'))
            for product, quantity in cls._line_totals(lines, 'picked_quantity'):
                StockReservations.release_committed(product, quantity)

            route.status = RouteStatus.COMPLETED
            route.completed_at = timezone.now()
            route.save(update_fields=['status', 'completed_at'])

        logger.info(
            "route.completed",
            extra={"route": route.code, "user": getattr(user, 'pk', None)},
        )
        return route

    @classmethod
    def mark_ready(cls, route: Route) -> None:
        """COLLECTING -> READY. Caller holds the route lock."""
        cls._check_transition(route, RouteStatus.READY)
        route.status = RouteStatus.READY
        route.ready_at = timezone.now()
        route.validated_shelf = None
        route.save(update_fields=['status', 'ready_at', 'validated_shelf'])
        logger.info("route.ready", extra={"route": route.code})

    # ══════════════════════════════════════════════════════════════
    # HELPERS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _check_transition(cls, route: Route, target: str) -> None:
        if target not in ROUTE_TRANSITIONS[RouteStatus(route.status)]:
            logger.info(
                "route.invalid_transition",
                extra={"route": route.code, "current": route.status, "target": target},
            )
            raise PickingError(
                'INVALID_ROUTE_TRANSITION',
                route=route.code,
                current=route.status,
                target=str(target),
            )

    @classmethod
    def _create_numbered(cls, name: str = '', **fields) -> Route:
        """
        Insert a route under the next free code.

        A concurrent creator can take the same code between the read and
        the insert; the unique index rejects one of them and it retries.
        """
        attempts = pickman_settings.ROUTE_CODE_ATTEMPTS
        for attempt in range(1, attempts + 1):
            code = cls._next_code()
            try:
                with transaction.atomic():
                    return Route.objects.create(
                        code=code,
                        name=name or code,
                        **fields,
                    )
            except IntegrityError:
                if attempt == attempts:
                    raise
                logger.info("route.code_taken", extra={"route": code, "attempt": attempt})

    @classmethod
    def _next_code(cls) -> str:
        prefix = pickman_settings.ROUTE_CODE_PREFIX
        digits = pickman_settings.ROUTE_CODE_DIGITS

        last = 0
        codes = Route.objects.filter(code__startswith=prefix).values_list('code', flat=True)
        for code in codes:
            suffix = code[len(prefix):]
            if suffix.isdigit():
                last = max(last, int(suffix))
        return f"{prefix}{last + 1:0{digits}d}"

    @staticmethod
    def _totals(merged, products):
        totals: dict[str, int] = {}
        for (_, barcode), quantity in merged.items():
            totals[barcode] = totals.get(barcode, 0) + quantity
        pairs = [(products[barcode], quantity) for barcode, quantity in totals.items()]
        return sorted(pairs, key=lambda pair: pair[0].pk)

    @staticmethod
    def _line_totals(lines, attr):
        totals: dict[int, list] = {}
        for line in lines:
            entry = totals.setdefault(line.product_id, [line.product, 0])
            entry[1] += getattr(line, attr)
        return [
            (product, quantity)
            for _, (product, quantity) in sorted(totals.items())
            if quantity > 0
        ]
