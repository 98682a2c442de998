"""
Order Ledger Tests

These tests verify that orders are created, modified and closed with
correct line pricing, totals derived from active items only, and one
audit entry per mutation.

Priority: HIGH - Orders are the revenue-generating core of the ledger
"""
import pytest
from decimal import Decimal

from core_backend.exceptions import ConflictError, NotFoundError, ValidationError
from orders.models import Order, OrderItem, OrderLog
from orders.services import OrderLedgerService


@pytest.mark.django_db
class TestOrderCreation:
    """Test order creation with items and modifiers"""

    def test_create_order_with_modifier_prices_line(self, session_id, burger, cheese_modifier):
        """
        CRITICAL: Verify a modified menu item line is priced from the snapshot

        Business Impact: 2x Burger (10.00) with extra cheese (+1.50) must bill 23.00
        """
        order = OrderLedgerService.create_order(
            session_id=session_id,
            table_id='T1',
            server_id='srv-1',
            items=[{
                'menu_item_id': burger.id,
                'quantity': 2,
                'modifiers': [{'option_id': cheese_modifier.id}],
            }],
        )

        item = order.items.get()
        assert item.line_total == Decimal('23.00'), f"Line total should be 23.00, got {item.line_total}"
        assert item.price_delta == Decimal('1.50')
        assert item.selected_modifiers[0]['option_name'] == 'Extra cheese'
        assert order.total == Decimal('23.00'), f"Order total should be 23.00, got {order.total}"
        assert order.status == Order.OrderStatus.OPEN
        assert order.delivery_status == Order.DeliveryStatus.WAITING

    def test_create_order_records_created_log(self, order):
        """Creating an order writes exactly one 'created' entry holding the full order"""
        logs = list(order.logs.all())
        assert len(logs) == 1
        assert logs[0].action == OrderLog.Action.CREATED
        assert logs[0].old_value is None
        assert logs[0].new_value['totals']['total'] == '21.50'
        assert len(logs[0].new_value['items']) == 2

    def test_create_order_captures_snapshot(self, order, burger):
        """Snapshot fields copy the catalog entry at the moment of sale"""
        item = order.items.get(menu_item_id=burger.id)
        assert item.snapshot_name == 'Burger'
        assert item.snapshot_sku == 'BRG-001'
        assert item.snapshot_category == 'Mains'
        assert item.snapshot_version == burger.version
        assert item.base_price == Decimal('10.00')
        assert item.vendor_price == Decimal('4.00')

    def test_create_order_profit(self, order):
        """Profit is (unit price - vendor price) x quantity summed over lines"""
        # Burger: (11.50 - 4.00) x 1 = 7.50, Fries: (5.00 - 1.00) x 2 = 8.00
        assert order.profit_total == Decimal('15.50')

    def test_create_order_without_items(self, session_id):
        """An empty order is valid and totals to zero"""
        order = OrderLedgerService.create_order(session_id=session_id, table_id='T2', server_id='srv-1')
        assert order.total == Decimal('0.00')
        assert order.items.count() == 0

    def test_line_must_reference_exactly_one_source(self, session_id, burger, lunch_combo):
        """
        CRITICAL: Each line names a menu item or a combo, never both or neither
        """
        with pytest.raises(ValidationError):
            OrderLedgerService.create_order(
                session_id=session_id, table_id='T1', server_id='srv-1',
                items=[{'menu_item_id': burger.id, 'combo_id': lunch_combo.id, 'quantity': 1}],
            )
        with pytest.raises(ValidationError):
            OrderLedgerService.create_order(
                session_id=session_id, table_id='T1', server_id='srv-1',
                items=[{'quantity': 1}],
            )
        assert Order.objects.count() == 0, "Rejected orders must not be written"

    def test_unknown_menu_item_is_not_found(self, session_id, db):
        with pytest.raises(NotFoundError):
            OrderLedgerService.create_order(
                session_id=session_id, table_id='T1', server_id='srv-1',
                items=[{'menu_item_id': 999999, 'quantity': 1}],
            )

    def test_unavailable_menu_item_is_rejected(self, session_id, burger):
        burger.is_available = False
        burger.save()
        with pytest.raises(NotFoundError):
            OrderLedgerService.create_order(
                session_id=session_id, table_id='T1', server_id='srv-1',
                items=[{'menu_item_id': burger.id, 'quantity': 1}],
            )

    @pytest.mark.parametrize('quantity', [0, -1, 1.5, '2', True])
    def test_invalid_quantity_is_rejected(self, session_id, fries, quantity):
        with pytest.raises(ValidationError):
            OrderLedgerService.create_order(
                session_id=session_id, table_id='T1', server_id='srv-1',
                items=[{'menu_item_id': fries.id, 'quantity': quantity}],
            )

    def test_unknown_modifier_option_is_rejected(self, session_id, fries, cheese_modifier):
        """Fries do not offer the cheese modifier"""
        with pytest.raises(ValidationError):
            OrderLedgerService.create_order(
                session_id=session_id, table_id='T1', server_id='srv-1',
                items=[{'menu_item_id': fries.id, 'quantity': 1, 'modifiers': [cheese_modifier.id]}],
            )

    def test_session_and_table_are_required(self, db, session_id):
        with pytest.raises(ValidationError):
            OrderLedgerService.create_order(session_id=None, table_id='T1', server_id='srv-1')
        with pytest.raises(ValidationError):
            OrderLedgerService.create_order(session_id=session_id, table_id='', server_id='srv-1')

    def test_tax_is_applied_to_discounted_subtotal(self, settings, session_id, fries):
        """Configured tax applies after line discounts"""
        settings.LEDGER = {**settings.LEDGER, 'TAX_RATE': '0.10'}
        order = OrderLedgerService.create_order(
            session_id=session_id, table_id='T1', server_id='srv-1',
            items=[{'menu_item_id': fries.id, 'quantity': 2, 'line_discount': '1.00'}],
        )
        assert order.subtotal == Decimal('10.00')
        assert order.discount_total == Decimal('1.00')
        assert order.tax_total == Decimal('0.90')
        assert order.total == Decimal('9.90')


@pytest.mark.django_db
class TestOrderModification:
    """Test adding, updating and deleting items"""

    def test_add_items_writes_single_log(self, order, soda):
        """
        CRITICAL: A batch of added items is one mutation and one log entry
        """
        OrderLedgerService.add_items(
            order.id,
            [{'menu_item_id': soda.id, 'quantity': 1}, {'menu_item_id': soda.id, 'quantity': 2}],
            server_id='srv-2',
        )
        order.refresh_from_db()

        assert order.total == Decimal('30.50'), f"Expected 21.50 + 9.00, got {order.total}"
        add_logs = order.logs.filter(action=OrderLog.Action.ADD_ITEMS)
        assert add_logs.count() == 1
        entry = add_logs.get()
        assert len(entry.new_value['items']) == 2
        assert entry.old_value['totals']['total'] == '21.50'
        assert entry.server_id == 'srv-2'

    def test_add_items_requires_items(self, order):
        with pytest.raises(ValidationError):
            OrderLedgerService.add_items(order.id, [])

    def test_add_items_to_missing_order(self, db, fries):
        with pytest.raises(NotFoundError):
            OrderLedgerService.add_items(424242, [{'menu_item_id': fries.id, 'quantity': 1}])

    def test_update_quantity_reprices_line(self, order, fries):
        item = order.items.get(menu_item_id=fries.id)

        updated = OrderLedgerService.update_item(order.id, item.id, {'quantity': 3})
        order.refresh_from_db()

        assert updated.line_total == Decimal('15.00')
        assert order.total == Decimal('26.50')
        entry = order.logs.get(action=OrderLog.Action.UPDATE_ITEM)
        assert entry.old_value['item']['quantity'] == 2
        assert entry.new_value['item']['quantity'] == 3

    def test_update_modifiers_reprices_line(self, order, burger):
        item = order.items.get(menu_item_id=burger.id)

        updated = OrderLedgerService.update_item(order.id, item.id, {'modifiers': []})
        order.refresh_from_db()

        assert updated.price_delta == Decimal('0')
        assert updated.selected_modifiers == []
        assert updated.line_total == Decimal('10.00')
        assert order.total == Decimal('20.00')

    def test_update_notes_only(self, order, fries):
        item = order.items.get(menu_item_id=fries.id)
        updated = OrderLedgerService.update_item(order.id, item.id, {'notes': 'no salt'})
        assert updated.notes == 'no salt'
        assert updated.line_total == Decimal('10.00')

    def test_update_with_no_changes_is_rejected(self, order, fries):
        item = order.items.get(menu_item_id=fries.id)
        with pytest.raises(ValidationError):
            OrderLedgerService.update_item(order.id, item.id, {})

    def test_update_cannot_drop_below_delivered(self, order, fries):
        from orders.services import OrderDeliveryService

        item = order.items.get(menu_item_id=fries.id)
        OrderDeliveryService.mark_delivered(order.id, [{'order_item_id': item.id, 'delivered_quantity': 2}])
        with pytest.raises(ValidationError):
            OrderLedgerService.update_item(order.id, item.id, {'quantity': 1})

    def test_delete_item_recomputes_total(self, session_id, burger, fries):
        """
        CRITICAL: Deleting the 5.00 item from a 10.00 + 5.00 order leaves 10.00

        Business Impact: Deleted items must never be billed
        """
        order = OrderLedgerService.create_order(
            session_id=session_id, table_id='T1', server_id='srv-1',
            items=[
                {'menu_item_id': burger.id, 'quantity': 1},
                {'menu_item_id': fries.id, 'quantity': 1},
            ],
        )
        fries_item = order.items.get(menu_item_id=fries.id)

        order = OrderLedgerService.delete_item(order.id, fries_item.id, server_id='srv-1')

        assert order.total == Decimal('10.00'), f"Expected 10.00 after delete, got {order.total}"
        entry = order.logs.get(action=OrderLog.Action.DELETE)
        assert entry.new_value['snapshot_name'] == 'Fries'
        assert entry.old_value['item']['order_item_id'] == fries_item.id

    def test_deleted_item_is_kept_for_audit(self, order, fries):
        item = order.items.get(menu_item_id=fries.id)
        OrderLedgerService.delete_item(order.id, item.id)

        item.refresh_from_db()
        assert item.state == OrderItem.ItemState.DELETED
        assert item.deleted_at is not None
        assert order.items.deleted().count() == 1
        assert order.items.active().count() == 1

    def test_deleted_item_cannot_be_deleted_again(self, order, fries):
        item = order.items.get(menu_item_id=fries.id)
        OrderLedgerService.delete_item(order.id, item.id)
        with pytest.raises(NotFoundError):
            OrderLedgerService.delete_item(order.id, item.id)

    def test_deleted_item_cannot_be_updated(self, order, fries):
        item = order.items.get(menu_item_id=fries.id)
        OrderLedgerService.delete_item(order.id, item.id)
        with pytest.raises(NotFoundError):
            OrderLedgerService.update_item(order.id, item.id, {'quantity': 1})

    def test_deleted_item_on_closed_order_conflicts(self, order, fries):
        """Order status is checked before the item lookup"""
        item = order.items.get(menu_item_id=fries.id)
        OrderLedgerService.delete_item(order.id, item.id)
        OrderLedgerService.close_order(order.id)

        with pytest.raises(ConflictError):
            OrderLedgerService.update_item(order.id, item.id, {'quantity': 1})
        with pytest.raises(ConflictError):
            OrderLedgerService.delete_item(order.id, item.id)

    @pytest.mark.parametrize('modifiers', [
        [[1, 2]],
        [{'option_id': 'cheese'}],
        [None],
        7,
    ])
    def test_malformed_modifier_selection_is_rejected(self, order, burger, modifiers):
        item = order.items.get(menu_item_id=burger.id)
        with pytest.raises(ValidationError):
            OrderLedgerService.update_item(order.id, item.id, {'modifiers': modifiers})
        with pytest.raises(ValidationError):
            OrderLedgerService.add_items(order.id, [{'menu_item_id': burger.id, 'quantity': 1, 'modifiers': modifiers}])


@pytest.mark.django_db
class TestOrderLifecycle:
    """Test close, cancel and totals repair"""

    def test_close_order(self, order):
        order = OrderLedgerService.close_order(order.id, server_id='srv-1')
        assert order.status == Order.OrderStatus.CLOSED
        assert order.closed_at is not None
        entry = order.logs.get(action=OrderLog.Action.CLOSE)
        assert entry.old_value == {'status': 'open'}

    def test_closed_order_rejects_mutations(self, order, fries):
        """
        CRITICAL: A closed order is frozen

        Business Impact: Items cannot be added to a bill after it is settled
        """
        item = order.items.get(menu_item_id=fries.id)
        OrderLedgerService.close_order(order.id)

        with pytest.raises(ConflictError):
            OrderLedgerService.add_items(order.id, [{'menu_item_id': fries.id, 'quantity': 1}])
        with pytest.raises(ConflictError):
            OrderLedgerService.update_item(order.id, item.id, {'quantity': 1})
        with pytest.raises(ConflictError):
            OrderLedgerService.delete_item(order.id, item.id)
        with pytest.raises(ConflictError):
            OrderLedgerService.close_order(order.id)

    def test_cancel_order(self, order):
        order = OrderLedgerService.cancel_order(order.id)
        assert order.status == Order.OrderStatus.CANCELLED
        assert order.logs.filter(action=OrderLog.Action.CANCEL).count() == 1
        with pytest.raises(ConflictError):
            OrderLedgerService.close_order(order.id)

    def test_recalculate_is_idempotent(self, order):
        first = OrderLedgerService.recalculate_totals(order.id)
        second = OrderLedgerService.recalculate_totals(order.id)
        assert first.total == second.total == Decimal('21.50')
        assert order.logs.filter(action=OrderLog.Action.RECALCULATE).count() == 2

    def test_recalculate_repairs_drifted_totals(self, order):
        Order.objects.filter(pk=order.id).update(total=Decimal('999.99'), subtotal=Decimal('0'))

        order = OrderLedgerService.recalculate_totals(order.id)

        assert order.total == Decimal('21.50')
        entry = order.logs.get(action=OrderLog.Action.RECALCULATE)
        assert entry.old_value['totals']['total'] == '999.99'

    def test_recalculate_allowed_on_closed_order(self, order):
        OrderLedgerService.close_order(order.id)
        order = OrderLedgerService.recalculate_totals(order.id)
        assert order.status == Order.OrderStatus.CLOSED
        assert order.total == Decimal('21.50')

    def test_missing_order_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            OrderLedgerService.close_order(123456)

    @pytest.mark.parametrize('order_id', ['abc', '1.5', None])
    def test_malformed_order_id_is_not_found(self, db, order_id):
        with pytest.raises(NotFoundError):
            OrderLedgerService.close_order(order_id)
        with pytest.raises(NotFoundError):
            OrderLedgerService.recalculate_totals(order_id)


@pytest.mark.django_db
class TestSnapshotImmutability:
    """Catalog edits must never reach items already sold"""

    def test_catalog_price_change_does_not_touch_items(self, order, burger):
        item = order.items.get(menu_item_id=burger.id)
        version = item.snapshot_version

        burger.selling_price = Decimal('99.00')
        burger.name = 'Deluxe Burger'
        burger.save()

        OrderLedgerService.recalculate_totals(order.id)
        item.refresh_from_db()
        order.refresh_from_db()

        assert burger.version == version + 1
        assert item.base_price == Decimal('10.00')
        assert item.snapshot_name == 'Burger'
        assert item.snapshot_version == version
        assert order.total == Decimal('21.50')

    def test_snapshot_fields_cannot_be_saved(self, order):
        item = order.items.first()
        item.base_price = Decimal('1.00')
        with pytest.raises(ValueError):
            item.save(update_fields=['base_price'])

    def test_updates_must_name_fields(self, order):
        item = order.items.first()
        with pytest.raises(ValueError):
            item.save()

    def test_quantity_change_keeps_captured_price(self, order, fries):
        fries.selling_price = Decimal('8.00')
        fries.save()
        item = order.items.get(menu_item_id=fries.id)

        updated = OrderLedgerService.update_item(order.id, item.id, {'quantity': 1})
        assert updated.base_price == Decimal('5.00')
        assert updated.line_total == Decimal('5.00')
