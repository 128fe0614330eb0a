"""
Tests for stock queries, reservation counters and the ledger audit.
"""

import pytest
from django.db.models import Q, Sum

from pickman import fulfillment, StockError
from pickman.models import LocationStock, ProductStock, ShelfClass, StockMovement
from pickman.services import StockReservations


pytestmark = pytest.mark.django_db


def assert_caches_match_ledger(product):
    """Every cache equals what the ledger says."""
    for location in LocationStock.objects.filter(product=product):
        assert location.quantity == location.ledger_total()
        assert location.quantity >= 0

    moves = StockMovement.objects.filter(product=product)
    on_hand = moves.aggregate(t=Sum('delta'))['t'] or 0
    sellable = moves.aggregate(
        t=Sum('delta', filter=Q(shelf__shelf_class=ShelfClass.SELLABLE))
    )['t'] or 0

    aggregate = fulfillment.get_product_aggregate(product)
    assert aggregate.on_hand == on_hand
    assert aggregate.sellable == sellable
    assert aggregate.sellable == sum(
        s.quantity for s in fulfillment.list_location_stock(product=product, sellable=True)
    )


class TestLocationStock:
    """Tests for get_location_stock() and list_location_stock()."""

    def test_unknown_location_is_zero(self, soap, shelf_a):
        assert fulfillment.get_location_stock(soap, shelf_a) == 0

    def test_list_orders_by_quantity(self, soap, shelf_a, shelf_b, receiving):
        fulfillment.receive(3, soap, shelf_a)
        fulfillment.receive(9, soap, shelf_b)
        fulfillment.receive(5, soap, receiving)

        rows = fulfillment.list_location_stock(product=soap)

        assert [r.shelf_code for r in rows] == ['B-02-01', 'RCV-01', 'A-01-01']
        assert [r.quantity for r in rows] == [9, 5, 3]

    def test_list_sellable_filter(self, soap, shelf_a, receiving):
        fulfillment.receive(3, soap, shelf_a)
        fulfillment.receive(5, soap, receiving)

        sellable = fulfillment.list_location_stock(product=soap, sellable=True)
        other = fulfillment.list_location_stock(product=soap, sellable=False)

        assert [r.shelf_code for r in sellable] == ['A-01-01']
        assert [r.shelf_code for r in other] == ['RCV-01']
        assert other[0].shelf_class == ShelfClass.RECEIVING

    def test_list_hides_empty_rows(self, soap, shelf_a):
        fulfillment.receive(3, soap, shelf_a)
        fulfillment.adjust(soap, shelf_a, 0, reason='Count')

        assert fulfillment.list_location_stock(product=soap) == []
        assert len(fulfillment.list_location_stock(product=soap, include_empty=True)) == 1


class TestProductAggregate:
    """Tests for get_product_aggregate()."""

    def test_never_moved(self, soap):
        aggregate = fulfillment.get_product_aggregate(soap)

        assert aggregate.on_hand == 0
        assert aggregate.sellable == 0
        assert aggregate.reserved == 0
        assert aggregate.available == 0

    def test_interleaved_operations_keep_invariants(self, soap, shelf_a, shelf_b,
                                                    receiving, damaged_shelf):
        """Caches stay equal to the ledger across mixed operations."""
        fulfillment.receive(20, soap, receiving)
        fulfillment.transfer(12, soap, receiving, shelf_a)
        fulfillment.receive(4, soap, damaged_shelf)
        fulfillment.transfer(5, soap, shelf_a, shelf_b)
        fulfillment.adjust(soap, shelf_b, 3, reason='Count')
        fulfillment.transfer(2, soap, shelf_b, damaged_shelf)
        fulfillment.receive(1, soap, receiving)
        fulfillment.adjust(soap, receiving, 9, reason='Count')
        with pytest.raises(StockError):
            fulfillment.transfer(99, soap, shelf_a, shelf_b)
        fulfillment.reverse(
            fulfillment.receive(6, soap, shelf_b),
            reason='Duplicate receipt',
        )

        assert_caches_match_ledger(soap)
        aggregate = fulfillment.get_product_aggregate(soap)
        assert aggregate.on_hand == 7 + 1 + 9 + 6
        assert aggregate.sellable == 7 + 1


class TestReservations:
    """Tests for StockReservations counters."""

    def test_reserve_within_on_hand(self, soap, receiving):
        fulfillment.receive(5, soap, receiving)

        StockReservations.reserve(soap, 5)

        assert fulfillment.get_product_aggregate(soap).reserved == 5

    def test_reserve_beyond_on_hand(self, soap, shelf_a):
        fulfillment.receive(5, soap, shelf_a)
        StockReservations.reserve(soap, 3)

        with pytest.raises(StockError) as exc:
            StockReservations.reserve(soap, 3)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == 2
        assert fulfillment.get_product_aggregate(soap).reserved == 3

    def test_commit_and_release(self, soap, shelf_a):
        fulfillment.receive(5, soap, shelf_a)
        StockReservations.reserve(soap, 4)

        StockReservations.commit(soap, 3)
        StockReservations.release_reserved(soap, 1)
        StockReservations.release_committed(soap, 3)

        stock = ProductStock.objects.get(product=soap)
        assert (stock.reserved, stock.committed) == (0, 0)

    @pytest.mark.parametrize('operation', ['commit', 'release_reserved', 'release_committed'])
    def test_counters_never_negative(self, soap, shelf_a, operation):
        fulfillment.receive(5, soap, shelf_a)

        with pytest.raises(StockError) as exc:
            getattr(StockReservations, operation)(soap, 1)

        assert exc.value.code == 'INVALID_RESERVATION'

    def test_lock_creates_missing_rows(self, soap, shampoo, shelf_a):
        fulfillment.receive(5, soap, shelf_a)

        rows = StockReservations.lock([shampoo, soap])

        assert [row.product_id for row in rows] == sorted([soap.pk, shampoo.pk])
        assert fulfillment.get_product_aggregate(shampoo).on_hand == 0


class TestRecalculate:
    """Tests for fulfillment.recalculate()."""

    def test_clean_ledger(self, soap, shelf_a):
        fulfillment.receive(5, soap, shelf_a)

        assert fulfillment.recalculate() == []

    def test_fixes_location_drift(self, soap, shelf_a, caplog):
        fulfillment.receive(5, soap, shelf_a)
        LocationStock.objects.filter(product=soap).update(_quantity=2)

        with caplog.at_level('WARNING', logger='pickman'):
            drifts = fulfillment.recalculate()

        assert len(drifts) == 1
        assert drifts[0].field == 'quantity'
        assert drifts[0].recorded == 2
        assert drifts[0].expected == 5
        assert fulfillment.get_location_stock(soap, shelf_a) == 5
        assert any(r.getMessage() == 'stock.location.recalculated' for r in caplog.records)

    def test_fixes_aggregate_drift(self, soap, shelf_a):
        fulfillment.receive(5, soap, shelf_a)
        ProductStock.objects.filter(product=soap).update(on_hand=9, sellable=9)

        drifts = fulfillment.recalculate(product=soap)

        assert {d.field for d in drifts} == {'on_hand', 'sellable'}
        assert_caches_match_ledger(soap)

    def test_dry_run_leaves_caches(self, soap, shelf_a):
        fulfillment.receive(5, soap, shelf_a)
        LocationStock.objects.filter(product=soap).update(_quantity=2)

        drifts = fulfillment.recalculate(dry_run=True)

        assert len(drifts) == 1
        assert fulfillment.get_location_stock(soap, shelf_a) == 2

    def test_shelf_reclassification(self, soap, receiving):
        """After a shelf becomes sellable, the audit rebuilds sellable."""
        fulfillment.receive(5, soap, receiving)
        receiving.shelf_class = ShelfClass.SELLABLE
        receiving.save()

        drifts = fulfillment.recalculate()

        assert [(d.field, d.recorded, d.expected) for d in drifts] == [('sellable', 0, 5)]
        assert fulfillment.get_product_aggregate(soap).sellable == 5

    def test_scoped_to_product(self, soap, shampoo, shelf_a):
        fulfillment.receive(5, soap, shelf_a)
        fulfillment.receive(5, shampoo, shelf_a)
        LocationStock.objects.update(_quantity=1)

        drifts = fulfillment.recalculate(product=soap)

        assert {d.product_id for d in drifts} == {soap.pk}
        assert fulfillment.get_location_stock(shampoo, shelf_a) == 1


class TestLocationStockQuerySet:
    """Filters on LocationStock.objects chain in any order."""

    def test_chained_filters(self, soap, shampoo, shelf_a, receiving):
        fulfillment.receive(3, soap, shelf_a)
        fulfillment.receive(5, soap, receiving)
        fulfillment.receive(2, shampoo, shelf_a)
        fulfillment.adjust(shampoo, shelf_a, 0, reason='Count')

        sellable = LocationStock.objects.sellable().in_stock().for_product(soap)
        elsewhere = LocationStock.objects.for_product(soap).non_sellable().in_stock()
        on_a = LocationStock.objects.at_shelf(shelf_a).in_stock()

        assert [row.shelf_id for row in sellable] == [shelf_a.pk]
        assert [row.shelf_id for row in elsewhere] == [receiving.pk]
        assert [row.product_id for row in on_a] == [soap.pk]
