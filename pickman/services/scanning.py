"""
Scan resolution — the operator's shelf and barcode scans.

Two-step protocol per item:

    1. scan_shelf()   validates the operator stands at the pick shelf
    2. scan_barcode() picks units from that shelf

Both lock the route row, so scans of one route are serialized. Both are
refused while the route has a transfer shortfall. A rejected scan changes
nothing.
"""

import logging
from functools import partial

from django.db import transaction
from django.db.models import F

from pickman.adapters.orders import get_order_backend
from pickman.exceptions import PickingError, StockError
from pickman.models.enums import MovementDirection, MovementType, RouteStatus
from pickman.models.location_stock import LocationStock
from pickman.models.product import Product
from pickman.models.route import RouteLine
from pickman.models.warehouse import Shelf
from pickman.projections import ScanResult, apportion
from pickman.services.ledger import MovementDraft, StockLedger
from pickman.services.reservations import StockReservations
from pickman.services.routes import RouteAggregator

logger = logging.getLogger('pickman')


def _rejected(code: str, route, message: str | None = None, **data) -> PickingError:
    logger.info("scan.rejected", extra={"code": code, "route": route.code, **data})
    return PickingError(code, message, route=route.code, **data)


class ScanResolver:
    """Shelf and barcode scan handling."""

    @classmethod
    def _open_route(cls, route):
        """Lock the route, check it is COLLECTING and has no shortfall."""
        route = RouteAggregator.get_route(route, lock=True)
        if route.status != RouteStatus.COLLECTING:
            raise _rejected('INVALID_ROUTE_STATUS', route, status=route.status)

        progress = RouteAggregator._progress(route)
        if progress.requires_transfer:
            raise _rejected(
                'TRANSFER_REQUIRED',
                route,
                shortfalls=[
                    {
                        'barcode': s.barcode,
                        'required': s.required,
                        'available_sellable': s.available_sellable,
                        'candidate_shelves': [c.shelf_code for c in s.candidate_shelves],
                    }
                    for s in progress.shortfalls
                ],
            )
        return route, progress

    @classmethod
    def scan_shelf(cls, route, shelf_code: str, user=None) -> ScanResult:
        """
        Validate the shelf of the next pending item.

        Raises:
            PickingError('ROUTE_NOT_FOUND'): Unknown route
            PickingError('INVALID_ROUTE_STATUS'): Route is not COLLECTING
            PickingError('TRANSFER_REQUIRED'): Sellable stock is short
            PickingError('UNKNOWN_SHELF'): No shelf with that code
            PickingError('NOTHING_TO_PICK'): Every item is picked
            PickingError('WRONG_SHELF'): Not the next pending item's shelf
        """
        with transaction.atomic():
            route, progress = cls._open_route(route)

            shelf = Shelf.objects.filter(code=shelf_code).first()
            if shelf is None:
                raise _rejected('UNKNOWN_SHELF', route, scanned=shelf_code)

            item = progress.next_item
            if item is None:
                raise _rejected('NOTHING_TO_PICK', route)

            if item.shelf_id != shelf.pk:
                raise _rejected(
                    'WRONG_SHELF',
                    route,
                    message=f"Wrong shelf. Go to {item.shelf_location} ({item.shelf_code}).",
                    expected=item.shelf_code,
                    expected_location=item.shelf_location,
                    scanned=shelf.code,
                )

            route.validated_shelf = shelf
            route.save(update_fields=['validated_shelf'])

        logger.info(
            "scan.shelf.validated",
            extra={"route": route.code, "shelf": shelf.code, "user": getattr(user, 'pk', None)},
        )
        return ScanResult(
            message=f"Shelf {shelf.code} validated. Pick {item.product_name} ({item.remaining}).",
            progress=progress,
            shelf_validated=True,
            item=item,
        )

    @classmethod
    def scan_barcode(cls, route, barcode: str, quantity: int = 1, user=None) -> ScanResult:
        """
        Pick units of a barcode from the validated shelf.

        The quantity is split across the item's orders in route sequence,
        written to the ledger as one PICKING entry, and moved from reserved
        to committed.

        Raises:
            PickingError('ROUTE_NOT_FOUND'): Unknown route
            PickingError('INVALID_ROUTE_STATUS'): Route is not COLLECTING
            PickingError('TRANSFER_REQUIRED'): Sellable stock is short
            PickingError('UNKNOWN_BARCODE_FOR_ROUTE'): Barcode not pending here
            PickingError('INVALID_QUANTITY'): quantity is not a positive integer
            PickingError('SHELF_SCAN_REQUIRED'): No shelf validated yet
            PickingError('WRONG_SHELF'): Validated shelf is not the item's shelf
            PickingError('OVER_PICK'): quantity exceeds what is left to pick
            PickingError('INSUFFICIENT_SHELF_STOCK'): Shelf holds fewer units
            PickingError('STOCK_MISMATCH'): Ledger refused the pick

        Concurrency:
            - Runs under transaction.atomic() holding the route row lock
            - Ledger write locks the LocationStock row
            - Order Service notifications are sent after commit
        """
        with transaction.atomic():
            route, progress = cls._open_route(route)

            item = progress.item_for(barcode)
            if item is None or item.is_complete:
                raise _rejected('UNKNOWN_BARCODE_FOR_ROUTE', route, barcode=barcode)

            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
                raise _rejected('INVALID_QUANTITY', route, requested=quantity)

            shelf = route.validated_shelf
            if shelf is None:
                raise _rejected(
                    'SHELF_SCAN_REQUIRED',
                    route,
                    expected=item.shelf_code,
                    expected_location=item.shelf_location,
                )
            if shelf.pk != item.shelf_id:
                raise _rejected(
                    'WRONG_SHELF',
                    route,
                    message=f"Wrong shelf. Go to {item.shelf_location} ({item.shelf_code}).",
                    expected=item.shelf_code,
                    expected_location=item.shelf_location,
                    scanned=shelf.code,
                )

            if quantity > item.remaining:
                raise _rejected('OVER_PICK', route, barcode=barcode,
                                remaining=item.remaining, requested=quantity)

            on_shelf = LocationStock.objects.filter(
                product_id=item.product_id, shelf=shelf,
            ).values_list('_quantity', flat=True).first() or 0
            if on_shelf < quantity:
                raise _rejected('INSUFFICIENT_SHELF_STOCK', route, barcode=barcode,
                                shelf=shelf.code, available=on_shelf, requested=quantity)

            plan = apportion(item.orders, quantity)
            product = Product.objects.get(pk=item.product_id)

            try:
                movement = StockLedger.record(MovementDraft(
                    product=product,
                    shelf=shelf,
                    quantity=quantity,
                    movement_type=MovementType.PICKING,
                    direction=MovementDirection.OUT,
                    source_shelf=shelf,
                    route=route,
                    order_reference=route.code,
                    user=user,
                    metadata={
                        'barcode': barcode,
                        'allocations': {a.order_id: a.quantity for a in plan},
                    },
                ))
            except StockError as exc:
                if exc.code != 'INSUFFICIENT_STOCK':
                    raise
                logger.critical(
                    "scan.stock_mismatch",
                    extra={
                        "route": route.code,
                        "barcode": barcode,
                        "shelf": shelf.code,
                        "available": exc.available,
                        "requested": quantity,
                    },
                )
                raise PickingError(
                    'STOCK_MISMATCH',
                    route=route.code,
                    barcode=barcode,
                    shelf=shelf.code,
                    available=exc.available,
                    requested=quantity,
                ) from exc

            StockReservations.commit(product, quantity)

            for allocation in plan:
                line = RouteLine.objects.select_for_update().get(
                    route=route, order_id=allocation.order_id, barcode=barcode,
                )
                line.picked_quantity += allocation.quantity
                line.save(update_fields=['picked_quantity'])

            progress = RouteAggregator._progress(route)
            picked_item = progress.item_for(barcode)
            next_item = progress.next_item

            if next_item is None or next_item.shelf_id != shelf.pk:
                route.validated_shelf = None
                route.save(update_fields=['validated_shelf'])

            if progress.is_complete:
                RouteAggregator.mark_ready(route)
                progress = RouteAggregator._progress(route)

            cls._notify(route, plan, picked_item)

        logger.info(
            "scan.barcode.accepted",
            extra={
                "route": route.code,
                "barcode": barcode,
                "quantity": quantity,
                "movement_id": movement.pk,
                "user": getattr(user, 'pk', None),
            },
        )

        if picked_item.is_complete:
            message = f"{picked_item.product_name} complete."
        else:
            message = (
                f"{picked_item.product_name} "
                f"({picked_item.picked_quantity}/{picked_item.total_quantity})"
            )
        if progress.is_complete:
            message += f" Route {route.code} is ready."

        return ScanResult(
            message=message,
            progress=progress,
            shelf_validated=route.validated_shelf_id is not None,
            item=picked_item,
            allocations=plan,
            movement_id=movement.pk,
        )

    @classmethod
    def _notify(cls, route, plan, item) -> None:
        """Queue Order Service updates for after commit."""
        backend = get_order_backend()
        shares = {share.order_id: share for share in item.orders}

        for allocation in plan:
            share = shares[allocation.order_id]
            transaction.on_commit(partial(
                backend.picked_quantity_updated,
                share.order_id,
                item.barcode,
                share.picked_quantity,
                share.quantity,
            ))

        touched = [a.order_id for a in plan]
        pending = set(
            RouteLine.objects.filter(route=route, order_id__in=touched).exclude(
                picked_quantity__gte=F('quantity'),
            ).values_list('order_id', flat=True)
        )
        for order_id in touched:
            if order_id not in pending:
                transaction.on_commit(partial(backend.order_ready_for_packing, order_id, route.code))
