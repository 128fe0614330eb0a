"""
Read projections — immutable views computed from ledger-backed state.

Nothing in here touches the database. Services query rows, hand them to
these functions and return the resulting dataclasses to callers, so every
call site sees the same shape.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ProductAggregate:
    """Roll-up quantities of one product."""

    product_id: int
    on_hand: int = 0
    sellable: int = 0
    reserved: int = 0
    committed: int = 0

    @property
    def non_sellable(self) -> int:
        return self.on_hand - self.sellable

    @property
    def available(self) -> int:
        """Sellable stock not yet earmarked by an open route."""
        return self.sellable - self.reserved


@dataclass(frozen=True)
class ShelfQuantity:
    """Quantity of one product on one shelf."""

    shelf_id: int
    shelf_code: str
    shelf_class: str
    quantity: int
    location: str = ''
    pick_sequence: int | None = None


@dataclass(frozen=True)
class OrderShare:
    """One order's part of a picking item, in route precedence."""

    order_id: str
    order_number: str
    sequence: int
    quantity: int
    picked_quantity: int = 0

    @property
    def remaining(self) -> int:
        return self.quantity - self.picked_quantity

    @property
    def is_complete(self) -> bool:
        return self.picked_quantity >= self.quantity


@dataclass(frozen=True)
class Allocation:
    """Portion of an accepted scan credited to one order."""

    order_id: str
    order_number: str
    quantity: int


@dataclass(frozen=True)
class PickingItem:
    """All orders' need for one barcode, with the shelf to pick it from."""

    barcode: str
    product_id: int
    product_name: str
    total_quantity: int
    picked_quantity: int
    orders: tuple[OrderShare, ...]
    shelf_id: int | None = None
    shelf_code: str | None = None
    shelf_location: str | None = None
    pick_sequence: int | None = None

    @property
    def remaining(self) -> int:
        return self.total_quantity - self.picked_quantity

    @property
    def is_complete(self) -> bool:
        return self.picked_quantity >= self.total_quantity


@dataclass(frozen=True)
class Shortfall:
    """A product the route needs more of than is sellable."""

    product_id: int
    barcode: str
    product_name: str
    required: int
    available_sellable: int
    available_non_sellable: int
    candidate_shelves: tuple[ShelfQuantity, ...] = ()

    @property
    def missing(self) -> int:
        return self.required - self.available_sellable


@dataclass(frozen=True)
class Availability:
    """Outcome of a transfer requirement check."""

    shortfalls: tuple[Shortfall, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.shortfalls


@dataclass(frozen=True)
class PickingProgress:
    """Pick list of a route plus its completion state."""

    route_id: int
    route_code: str
    status: str
    items: tuple[PickingItem, ...]
    total_orders: int
    shortfalls: tuple[Shortfall, ...] = ()

    @property
    def total_items(self) -> int:
        return sum(item.total_quantity for item in self.items)

    @property
    def picked_items(self) -> int:
        return sum(item.picked_quantity for item in self.items)

    @property
    def is_complete(self) -> bool:
        return all(item.is_complete for item in self.items)

    @property
    def next_item(self) -> PickingItem | None:
        """First item in pick-list order that still needs picking."""
        for item in self.items:
            if not item.is_complete:
                return item
        return None

    @property
    def requires_transfer(self) -> bool:
        return bool(self.shortfalls)

    def item_for(self, barcode: str) -> PickingItem | None:
        for item in self.items:
            if item.barcode == barcode:
                return item
        return None


@dataclass(frozen=True)
class ScanResult:
    """Outcome of an accepted scan."""

    message: str
    progress: PickingProgress
    shelf_validated: bool
    item: PickingItem | None = None
    allocations: tuple[Allocation, ...] = field(default_factory=tuple)
    movement_id: int | None = None


# ══════════════════════════════════════════════════════════════
# PURE FUNCTIONS
# ══════════════════════════════════════════════════════════════


def choose_pick_shelf(stocks: Iterable[ShelfQuantity],
                      current_shelf_id: int | None = None) -> ShelfQuantity | None:
    """
    Shelf to pick a product from: the sellable shelf with most stock.

    Ties are broken by shelf code so the choice is stable. A shelf the
    operator already validated keeps the item while it still holds units.
    """
    best = None
    for stock in stocks:
        if stock.quantity <= 0:
            continue
        if current_shelf_id is not None and stock.shelf_id == current_shelf_id:
            return stock
        if best is None or (-stock.quantity, stock.shelf_code) < (-best.quantity, best.shelf_code):
            best = stock
    return best


def _pick_order_key(item: PickingItem):
    return (
        item.shelf_id is None,
        item.pick_sequence is None,
        item.pick_sequence or 0,
        item.shelf_code or '',
        item.product_name,
        item.barcode,
    )


def build_picking_items(
    lines: Iterable[Mapping],
    shelves: Mapping[int, ShelfQuantity | None],
) -> tuple[PickingItem, ...]:
    """
    Group route lines by barcode into picking items.

    Args:
        lines: Mappings with barcode, product_id, product_name, order_id,
            order_number, sequence, quantity, picked_quantity.
        shelves: product_id -> shelf to pick from (None when no sellable stock).

    Returns:
        Items in walk order: by shelf pick sequence, shelf code, product
        name, barcode. Order shares inside an item follow route sequence.
    """
    grouped: dict[str, dict] = {}

    for line in lines:
        entry = grouped.setdefault(line['barcode'], {
            'product_id': line['product_id'],
            'product_name': line['product_name'],
            'shares': {},
        })
        shares = entry['shares']
        key = line['order_id']
        if key in shares:
            prev = shares[key]
            shares[key] = OrderShare(
                order_id=prev.order_id,
                order_number=prev.order_number,
                sequence=min(prev.sequence, line['sequence']),
                quantity=prev.quantity + line['quantity'],
                picked_quantity=prev.picked_quantity + line['picked_quantity'],
            )
        else:
            shares[key] = OrderShare(
                order_id=line['order_id'],
                order_number=line['order_number'],
                sequence=line['sequence'],
                quantity=line['quantity'],
                picked_quantity=line['picked_quantity'],
            )

    items = []
    for barcode, entry in grouped.items():
        orders = tuple(sorted(entry['shares'].values(), key=lambda s: (s.sequence, s.order_id)))
        shelf = shelves.get(entry['product_id'])
        items.append(PickingItem(
            barcode=barcode,
            product_id=entry['product_id'],
            product_name=entry['product_name'],
            total_quantity=sum(s.quantity for s in orders),
            picked_quantity=sum(s.picked_quantity for s in orders),
            orders=orders,
            shelf_id=shelf.shelf_id if shelf else None,
            shelf_code=shelf.shelf_code if shelf else None,
            shelf_location=(shelf.location or shelf.shelf_code) if shelf else None,
            pick_sequence=shelf.pick_sequence if shelf else None,
        ))

    return tuple(sorted(items, key=_pick_order_key))


def apportion(orders: Sequence[OrderShare], quantity: int) -> tuple[Allocation, ...]:
    """
    Split a picked quantity across orders in precedence order.

    Each order absorbs up to its own remaining need before the next one is
    considered, so orders added to the route first complete first.

    Raises:
        ValueError: If quantity is not positive or exceeds the total remaining.
    """
    if quantity <= 0:
        raise ValueError("quantity must be positive")

    left = quantity
    plan = []
    for share in sorted(orders, key=lambda s: (s.sequence, s.order_id)):
        if left == 0:
            break
        take = min(share.remaining, left)
        if take > 0:
            plan.append(Allocation(share.order_id, share.order_number, take))
            left -= take

    if left:
        raise ValueError(f"{left} unit(s) exceed the remaining quantity")
    return tuple(plan)


def required_by_product(items: Iterable[PickingItem]) -> dict[int, int]:
    """Pending quantity per product over the items still to pick."""
    required: dict[int, int] = {}
    for item in items:
        if item.remaining > 0:
            required[item.product_id] = required.get(item.product_id, 0) + item.remaining
    return required
