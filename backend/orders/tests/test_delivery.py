"""
Delivery Tracking Tests

These tests verify per-item delivered counters and the derived order
delivery status.
"""
import pytest

from core_backend.exceptions import ConflictError, NotFoundError, ValidationError
from orders.models import Order, OrderLog
from orders.services import OrderDeliveryService, OrderLedgerService


@pytest.fixture
def items(order, burger, fries):
    return order.items.get(menu_item_id=burger.id), order.items.get(menu_item_id=fries.id)


@pytest.mark.django_db
class TestMarkDelivered:
    """Test delivered quantity increments"""

    def test_partial_delivery_moves_order_in_progress(self, order, items):
        burger_item, fries_item = items

        order = OrderDeliveryService.mark_delivered(
            order.id, [{'order_item_id': fries_item.id, 'delivered_quantity': 1}], server_id='runner-1'
        )
        fries_item.refresh_from_db()

        assert fries_item.delivered_quantity == 1
        assert fries_item.delivery_state == 'partially_delivered'
        assert order.delivery_status == Order.DeliveryStatus.IN_PROGRESS
        assert order.delivered_at is None

    def test_full_delivery_completes_order(self, order, items):
        """
        CRITICAL: The order is completed only when every active item is fully delivered
        """
        burger_item, fries_item = items

        order = OrderDeliveryService.mark_delivered(order.id, [
            {'order_item_id': burger_item.id, 'delivered_quantity': 1},
            {'order_item_id': fries_item.id, 'delivered_quantity': 2},
        ])

        assert order.delivery_status == Order.DeliveryStatus.COMPLETED
        assert order.delivered_at is not None
        entry = order.logs.get(action=OrderLog.Action.MARK_DELIVERED)
        assert entry.old_value == {'delivery_status': 'waiting'}
        assert len(entry.new_value['items']) == 2

    def test_duplicate_entries_are_summed(self, order, items):
        _, fries_item = items
        OrderDeliveryService.mark_delivered(order.id, [
            {'order_item_id': fries_item.id, 'delivered_quantity': 1},
            {'order_item_id': fries_item.id, 'delivered_quantity': 1},
        ])
        fries_item.refresh_from_db()
        assert fries_item.delivered_quantity == 2

    def test_over_delivery_is_rejected_atomically(self, order, items):
        """No counter changes when any entry is invalid"""
        burger_item, fries_item = items

        with pytest.raises(ValidationError):
            OrderDeliveryService.mark_delivered(order.id, [
                {'order_item_id': burger_item.id, 'delivered_quantity': 1},
                {'order_item_id': fries_item.id, 'delivered_quantity': 3},
            ])

        burger_item.refresh_from_db()
        assert burger_item.delivered_quantity == 0
        assert not order.logs.filter(action=OrderLog.Action.MARK_DELIVERED).exists()

    @pytest.mark.parametrize('quantity', [0, -1, '1', None])
    def test_invalid_quantity_is_rejected(self, order, items, quantity):
        _, fries_item = items
        with pytest.raises(ValidationError):
            OrderDeliveryService.mark_delivered(
                order.id, [{'order_item_id': fries_item.id, 'delivered_quantity': quantity}]
            )

    def test_empty_deliveries_rejected(self, order):
        with pytest.raises(ValidationError):
            OrderDeliveryService.mark_delivered(order.id, [])

    def test_deleted_item_cannot_be_delivered(self, order, items):
        _, fries_item = items
        OrderLedgerService.delete_item(order.id, fries_item.id)
        with pytest.raises(NotFoundError):
            OrderDeliveryService.mark_delivered(
                order.id, [{'order_item_id': fries_item.id, 'delivered_quantity': 1}]
            )

    def test_deleting_last_pending_item_completes_order(self, order, items):
        burger_item, fries_item = items
        OrderDeliveryService.mark_delivered(order.id, [{'order_item_id': burger_item.id, 'delivered_quantity': 1}])

        order = OrderLedgerService.delete_item(order.id, fries_item.id)

        assert order.delivery_status == Order.DeliveryStatus.COMPLETED

    def test_adding_items_reopens_completed_order(self, order, items, soda):
        burger_item, fries_item = items
        OrderDeliveryService.mark_delivered(order.id, [
            {'order_item_id': burger_item.id, 'delivered_quantity': 1},
            {'order_item_id': fries_item.id, 'delivered_quantity': 2},
        ])

        order = OrderLedgerService.add_items(order.id, [{'menu_item_id': soda.id, 'quantity': 1}])

        assert order.delivery_status == Order.DeliveryStatus.IN_PROGRESS
        assert order.delivered_at is None

    def test_closed_order_can_still_be_delivered(self, order, items):
        _, fries_item = items
        OrderLedgerService.close_order(order.id)
        order = OrderDeliveryService.mark_delivered(
            order.id, [{'order_item_id': fries_item.id, 'delivered_quantity': 2}]
        )
        assert order.delivery_status == Order.DeliveryStatus.IN_PROGRESS

    def test_cancelled_order_rejects_delivery(self, order, items):
        _, fries_item = items
        OrderLedgerService.cancel_order(order.id)
        with pytest.raises(ConflictError):
            OrderDeliveryService.mark_delivered(
                order.id, [{'order_item_id': fries_item.id, 'delivered_quantity': 1}]
            )


@pytest.mark.django_db
class TestMarkWaiting:
    """Test returning an order to the queue"""

    def test_mark_waiting_keeps_counters(self, order, items):
        _, fries_item = items
        OrderDeliveryService.mark_delivered(order.id, [{'order_item_id': fries_item.id, 'delivered_quantity': 1}])

        order = OrderDeliveryService.mark_waiting(order.id, server_id='runner-1')
        fries_item.refresh_from_db()

        assert order.delivery_status == Order.DeliveryStatus.WAITING
        assert fries_item.delivered_quantity == 1
        assert order.logs.filter(action=OrderLog.Action.MARK_WAITING).count() == 1

    def test_mark_waiting_missing_order(self, db):
        with pytest.raises(NotFoundError):
            OrderDeliveryService.mark_waiting(987654)
