"""
Tests for the stock ledger (record, receive, transfer, adjust, reverse).
"""

import pytest

from pickman import fulfillment, StockError
from pickman.models import (
    LocationStock,
    MovementDirection,
    MovementType,
    Product,
    ProductStock,
    StockMovement,
)
from pickman.services.ledger import MovementDraft


pytestmark = pytest.mark.django_db


class TestRecord:
    """Tests for fulfillment.record()."""

    def test_record_in_creates_movement_and_caches(self, soap, shelf_a):
        """An IN entry creates the movement and both caches."""
        movement = fulfillment.record(MovementDraft(
            product=soap,
            shelf=shelf_a,
            quantity=7,
            movement_type=MovementType.RECEIVING,
            direction=MovementDirection.IN,
        ))

        assert movement.delta == 7
        assert movement.quantity_before == 0
        assert movement.quantity_after == 7
        assert LocationStock.objects.get(product=soap, shelf=shelf_a).quantity == 7
        stock = ProductStock.objects.get(product=soap)
        assert stock.on_hand == 7
        assert stock.sellable == 7

    def test_record_out_snapshots_quantities(self, soap, shelf_a):
        fulfillment.receive(10, soap, shelf_a)

        movement = fulfillment.record(MovementDraft(
            product=soap,
            shelf=shelf_a,
            quantity=4,
            movement_type=MovementType.ADJUSTMENT,
            direction=MovementDirection.OUT,
        ))

        assert movement.delta == -4
        assert movement.quantity_before == 10
        assert movement.quantity_after == 6

    @pytest.mark.parametrize('quantity', [0, -1, True, 2.5])
    def test_record_invalid_quantity(self, soap, shelf_a, quantity):
        with pytest.raises(StockError) as exc:
            fulfillment.record(MovementDraft(
                product=soap,
                shelf=shelf_a,
                quantity=quantity,
                movement_type=MovementType.RECEIVING,
                direction=MovementDirection.IN,
            ))

        assert exc.value.code == 'INVALID_QUANTITY'
        assert exc.value.category == 'user'
        assert not StockMovement.objects.exists()

    def test_record_unsaved_product(self, shelf_a):
        with pytest.raises(StockError) as exc:
            fulfillment.receive(1, Product(sku='X', barcode='X', name='Ghost'), shelf_a)

        assert exc.value.code == 'INVALID_PRODUCT'
        assert exc.value.category == 'precondition'

    def test_record_missing_shelf(self, soap):
        with pytest.raises(StockError) as exc:
            fulfillment.receive(1, soap, None)

        assert exc.value.code == 'INVALID_SHELF'

    def test_record_out_below_zero(self, soap, shelf_a):
        """OUT beyond the shelf quantity fails and writes nothing."""
        fulfillment.receive(3, soap, shelf_a)

        with pytest.raises(StockError) as exc:
            fulfillment.record(MovementDraft(
                product=soap,
                shelf=shelf_a,
                quantity=5,
                movement_type=MovementType.PICKING,
                direction=MovementDirection.OUT,
            ))

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.category == 'integrity'
        assert exc.value.available == 3
        assert exc.value.requested == 5
        assert StockMovement.objects.count() == 1
        assert fulfillment.get_location_stock(soap, shelf_a) == 3

    def test_record_out_of_empty_shelf_leaves_no_row(self, soap, shelf_a):
        with pytest.raises(StockError):
            fulfillment.record(MovementDraft(
                product=soap,
                shelf=shelf_a,
                quantity=1,
                movement_type=MovementType.PICKING,
                direction=MovementDirection.OUT,
            ))

        assert not LocationStock.objects.exists()

    def test_record_logs_event(self, soap, shelf_a, caplog):
        with caplog.at_level('INFO', logger='pickman'):
            fulfillment.receive(2, soap, shelf_a)

        assert any(r.getMessage() == 'ledger.record' for r in caplog.records)


class TestImmutability:
    """Movements cannot be changed or deleted."""

    def test_update_raises(self, soap, shelf_a):
        movement = fulfillment.receive(5, soap, shelf_a)
        movement.delta = 50

        with pytest.raises(ValueError, match='immutable'):
            movement.save()

    def test_delete_raises(self, soap, shelf_a):
        movement = fulfillment.receive(5, soap, shelf_a)

        with pytest.raises(ValueError, match='immutable'):
            movement.delete()

    def test_direction_must_match_delta(self, soap, shelf_a):
        with pytest.raises(ValueError):
            StockMovement(
                product=soap,
                shelf=shelf_a,
                delta=5,
                movement_type=MovementType.RECEIVING,
                direction=MovementDirection.OUT,
            ).save()


class TestReceive:
    """Tests for fulfillment.receive()."""

    def test_receive_on_sellable(self, soap, shelf_a):
        movement = fulfillment.receive(50, soap, shelf_a, note='PO-17')

        assert movement.movement_type == MovementType.RECEIVING
        assert movement.direction == MovementDirection.IN
        assert movement.target_shelf == shelf_a
        assert movement.note == 'PO-17'
        aggregate = fulfillment.get_product_aggregate(soap)
        assert aggregate.on_hand == 50
        assert aggregate.sellable == 50

    def test_receive_on_non_sellable(self, soap, receiving):
        fulfillment.receive(20, soap, receiving)

        aggregate = fulfillment.get_product_aggregate(soap)
        assert aggregate.on_hand == 20
        assert aggregate.sellable == 0
        assert aggregate.non_sellable == 20

    def test_receive_stores_metadata(self, soap, shelf_a):
        movement = fulfillment.receive(1, soap, shelf_a, supplier='ACME')

        assert movement.metadata == {'supplier': 'ACME'}


class TestTransfer:
    """Tests for fulfillment.transfer()."""

    def test_transfer_creates_two_entries(self, soap, receiving, shelf_a):
        fulfillment.receive(10, soap, receiving)

        out, into = fulfillment.transfer(6, soap, receiving, shelf_a)

        assert out.delta == -6
        assert out.shelf == receiving
        assert into.delta == 6
        assert into.shelf == shelf_a
        assert out.source_shelf == into.source_shelf == receiving
        assert out.target_shelf == into.target_shelf == shelf_a
        assert fulfillment.get_location_stock(soap, receiving) == 4
        assert fulfillment.get_location_stock(soap, shelf_a) == 6

    def test_transfer_moves_sellable(self, soap, receiving, shelf_a):
        fulfillment.receive(10, soap, receiving)
        fulfillment.transfer(6, soap, receiving, shelf_a)

        aggregate = fulfillment.get_product_aggregate(soap)
        assert aggregate.on_hand == 10
        assert aggregate.sellable == 6

    def test_transfer_same_shelf(self, soap, shelf_a):
        fulfillment.receive(10, soap, shelf_a)

        with pytest.raises(StockError) as exc:
            fulfillment.transfer(1, soap, shelf_a, shelf_a)

        assert exc.value.code == 'INVALID_SHELF'

    def test_transfer_insufficient_is_atomic(self, soap, receiving, shelf_a):
        fulfillment.receive(2, soap, receiving)

        with pytest.raises(StockError) as exc:
            fulfillment.transfer(3, soap, receiving, shelf_a)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert StockMovement.objects.filter(movement_type=MovementType.TRANSFER).count() == 0
        assert fulfillment.get_location_stock(soap, shelf_a) == 0


class TestAdjust:
    """Tests for fulfillment.adjust()."""

    def test_adjust_up(self, soap, shelf_a):
        fulfillment.receive(10, soap, shelf_a)

        movement = fulfillment.adjust(soap, shelf_a, 12, reason='Count')

        assert movement.movement_type == MovementType.ADJUSTMENT
        assert movement.delta == 2
        assert fulfillment.get_location_stock(soap, shelf_a) == 12

    def test_adjust_down(self, soap, shelf_a):
        fulfillment.receive(10, soap, shelf_a)

        movement = fulfillment.adjust(soap, shelf_a, 7, reason='Count')

        assert movement.direction == MovementDirection.OUT
        assert movement.delta == -3
        assert fulfillment.get_product_aggregate(soap).sellable == 7

    def test_adjust_unchanged_returns_none(self, soap, shelf_a):
        fulfillment.receive(10, soap, shelf_a)

        assert fulfillment.adjust(soap, shelf_a, 10, reason='Count') is None
        assert StockMovement.objects.count() == 1

    def test_adjust_requires_reason(self, soap, shelf_a):
        with pytest.raises(StockError) as exc:
            fulfillment.adjust(soap, shelf_a, 5, reason='')

        assert exc.value.code == 'REASON_REQUIRED'

    def test_adjust_negative(self, soap, shelf_a):
        with pytest.raises(StockError) as exc:
            fulfillment.adjust(soap, shelf_a, -1, reason='Count')

        assert exc.value.code == 'INVALID_QUANTITY'


class TestReverse:
    """Tests for fulfillment.reverse()."""

    def test_reverse_receive(self, soap, shelf_a, user):
        movement = fulfillment.receive(10, soap, shelf_a)

        reversal = fulfillment.reverse(movement, reason='Wrong PO', user=user)

        assert reversal.movement_type == MovementType.CANCEL
        assert reversal.direction == MovementDirection.OUT
        assert reversal.delta == -10
        assert reversal.reverses == movement
        assert reversal.user == user
        assert fulfillment.get_location_stock(soap, shelf_a) == 0
        assert fulfillment.get_product_aggregate(soap).on_hand == 0

    def test_reverse_out_restores(self, soap, shelf_a):
        fulfillment.receive(10, soap, shelf_a)
        out = fulfillment.adjust(soap, shelf_a, 4, reason='Count')

        fulfillment.reverse(out, reason='Recount')

        assert fulfillment.get_location_stock(soap, shelf_a) == 10

    def test_reverse_twice(self, soap, shelf_a):
        movement = fulfillment.receive(10, soap, shelf_a)
        fulfillment.reverse(movement, reason='Wrong PO')

        with pytest.raises(StockError) as exc:
            fulfillment.reverse(movement, reason='Again')

        assert exc.value.code == 'ALREADY_REVERSED'

    def test_reverse_cancel_entry(self, soap, shelf_a):
        movement = fulfillment.receive(10, soap, shelf_a)
        reversal = fulfillment.reverse(movement, reason='Wrong PO')

        with pytest.raises(StockError) as exc:
            fulfillment.reverse(reversal, reason='Undo the undo')

        assert exc.value.code == 'ALREADY_REVERSED'

    def test_reverse_requires_reason(self, soap, shelf_a):
        movement = fulfillment.receive(10, soap, shelf_a)

        with pytest.raises(StockError) as exc:
            fulfillment.reverse(movement, reason='')

        assert exc.value.code == 'REASON_REQUIRED'

    def test_reverse_in_after_stock_left(self, soap, shelf_a, receiving):
        """Reversing a receipt whose goods already moved on fails."""
        movement = fulfillment.receive(10, soap, receiving)
        fulfillment.transfer(8, soap, receiving, shelf_a)

        with pytest.raises(StockError) as exc:
            fulfillment.reverse(movement, reason='Wrong PO')

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert not StockMovement.objects.filter(movement_type=MovementType.CANCEL).exists()
