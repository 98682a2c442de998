"""
OrderLedger: the aggregate root for orders.

Every mutation runs in one transaction that writes the order row, its item
rows and exactly one log entry. Input is validated and priced before the
first write, so a rejected request leaves nothing behind.
"""
from collections import OrderedDict
import logging
import time

from django.db import transaction
from django.utils import timezone

from core_backend.exceptions import ConflictError, NotFoundError, ValidationError
from core_backend.utils.money import ZERO
from integrations.inventory_gateway import InventoryGateway
from menu.services import CatalogSnapshotService
from orders.models import Order, OrderItem, OrderLog
from .audit_service import OrderAuditService
from .delivery_service import OrderDeliveryService
from .pricing_service import OrderPricingService, PricedLine, StockLine

logger = logging.getLogger(__name__)

TOTAL_FIELDS = ["subtotal", "discount_total", "tax_total", "total", "profit_total"]


class OrderLedgerService:
    """Service for creating orders and mutating their items."""

    # --- lookups -----------------------------------------------------------

    @staticmethod
    def get_order(order_id) -> Order:
        try:
            return Order.objects.get(pk=order_id)
        except (Order.DoesNotExist, ValueError):
            raise NotFoundError(f"Order {order_id} not found", code="order_not_found")

    @staticmethod
    def _lock_order(order_id) -> Order:
        try:
            return Order.objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, ValueError):
            raise NotFoundError(f"Order {order_id} not found", code="order_not_found")

    @staticmethod
    def _ensure_mutable(order: Order) -> None:
        if order.status != Order.OrderStatus.OPEN:
            raise ConflictError(f"Order {order.id} is {order.status}", code=f"order_{order.status}")

    @staticmethod
    def _get_active_item(order: Order, item_id) -> OrderItem:
        try:
            return order.items.active().select_for_update().get(pk=item_id)
        except (OrderItem.DoesNotExist, ValueError):
            raise NotFoundError(f"Item {item_id} not found on order {order.id}", code="item_not_found")

    # --- pricing and inventory ---------------------------------------------

    @staticmethod
    def price_line(data) -> PricedLine:
        """Resolve one input line to a snapshot and price it."""
        if not isinstance(data, dict):
            raise ValidationError("Each item must be an object", code="invalid_item")

        menu_item_id = data.get("menu_item_id")
        combo_id = data.get("combo_id")
        if (menu_item_id is None) == (combo_id is None):
            raise ValidationError(
                "Each item must reference exactly one of menu_item_id or combo_id",
                code="item_or_combo_required",
            )

        quantity = data.get("quantity", 1)
        line_discount = data.get("line_discount") or ZERO
        notes = data.get("notes") or ""

        if menu_item_id is not None:
            snapshot = CatalogSnapshotService.get_menu_item_snapshot(menu_item_id)
            if not snapshot.is_available:
                raise NotFoundError(f"Menu item {snapshot.name} is unavailable", code="menu_item_unavailable")
            return OrderPricingService.price_menu_item(
                snapshot, quantity, data.get("modifiers"), line_discount, notes
            )

        if data.get("modifiers"):
            raise ValidationError("Combos do not take modifiers", code="invalid_modifier")
        snapshot = CatalogSnapshotService.get_combo_snapshot(combo_id)
        if not snapshot.is_available:
            raise NotFoundError(f"Combo {snapshot.name} is unavailable", code="combo_unavailable")
        return OrderPricingService.price_combo(snapshot, quantity, line_discount, notes)

    @staticmethod
    def _price_lines(items) -> list:
        if items is None:
            return []
        if not isinstance(items, (list, tuple)):
            raise ValidationError("items must be a list", code="invalid_items")
        return [OrderLedgerService.price_line(data) for data in items]

    @staticmethod
    def _aggregate_stock(lines) -> list:
        by_sku = OrderedDict()
        for line in lines:
            for stock in line.stock_lines:
                current = by_sku.get(stock.sku)
                quantity = stock.quantity + (current.quantity if current else 0)
                by_sku[stock.sku] = StockLine(sku=stock.sku, quantity=quantity, unit_cost=stock.unit_cost)
        return list(by_sku.values())

    @staticmethod
    def _check_inventory(stock_lines) -> None:
        if not stock_lines:
            return
        if not InventoryGateway().is_available(stock_lines):
            skus = ", ".join(f"{s.sku} x{s.quantity}" for s in stock_lines)
            raise ConflictError(f"Insufficient stock for {skus}", code="insufficient_stock")

    @staticmethod
    def _schedule_deduction(order_id, stock_lines) -> None:
        if not stock_lines:
            return
        from orders.tasks import deduct_order_inventory

        payload = [
            {"sku": s.sku, "quantity": s.quantity, "unit_cost": str(s.unit_cost) if s.unit_cost is not None else None}
            for s in stock_lines
        ]

        def enqueue_deduction():
            try:
                deduct_order_inventory.delay(order_id, payload)
            except Exception as e:
                # The order is already committed
                logger.error(f"Could not queue inventory deduction for order {order_id}: {e}")

        transaction.on_commit(enqueue_deduction)

    # --- writes ------------------------------------------------------------

    @staticmethod
    def _create_items(order: Order, lines) -> list:
        created = []
        for line in lines:
            created.append(OrderItem.objects.create(
                order=order,
                menu_item_id=line.menu_item_id,
                combo_id=line.combo_id,
                quantity=line.quantity,
                base_price=line.base_price,
                vendor_price=line.vendor_price,
                price_delta=line.price_delta,
                line_discount=line.line_discount,
                line_total=line.line_total,
                profit=line.profit,
                is_discountable=line.is_discountable,
                notes=line.notes,
                snapshot_name=line.snapshot_name,
                snapshot_sku=line.snapshot_sku,
                snapshot_category=line.snapshot_category,
                snapshot_group=line.snapshot_group,
                snapshot_version=line.snapshot_version,
                snapshot_picture_url=line.snapshot_picture_url,
                selected_modifiers=line.selected_modifiers,
            ))
        return created

    @staticmethod
    def _apply_totals(order: Order) -> list:
        """
        Recompute totals and delivery status strictly from active items and
        save them on the order. Returns the active items.
        """
        start_time = time.monotonic()
        items = list(order.items.active())

        totals = OrderPricingService.calculate_order_totals(items)
        for name, value in totals.as_dict().items():
            setattr(order, name, value)
        OrderDeliveryService.refresh_delivery_status(order, items)
        order.save(update_fields=TOTAL_FIELDS + ["delivery_status", "delivered_at", "updated_at"])

        elapsed_ms = (time.monotonic() - start_time) * 1000
        logger.debug(f"Recalculated order {order.id} totals in {elapsed_ms:.1f}ms ({len(items)} items)")
        return items

    @staticmethod
    @transaction.atomic
    def create_order(session_id, table_id, server_id, items=None, billing_id=None, server_name="") -> Order:
        """
        Create an order with one item per input line.

        Each line is {"menu_item_id" | "combo_id", "quantity", "modifiers",
        "notes", "line_discount"}.
        """
        if not session_id:
            raise ValidationError("session_id is required", code="session_required")
        if not table_id:
            raise ValidationError("table_id is required", code="table_required")

        lines = OrderLedgerService._price_lines(items)
        stock_lines = OrderLedgerService._aggregate_stock(lines)
        OrderLedgerService._check_inventory(stock_lines)

        order = Order.objects.create(
            session_id=session_id,
            billing_id=billing_id,
            table_id=table_id,
            server_id=server_id or "",
            server_name=server_name or "",
        )
        OrderLedgerService._create_items(order, lines)
        active_items = OrderLedgerService._apply_totals(order)

        OrderAuditService.record(
            order,
            OrderLog.Action.CREATED,
            new_value=OrderAuditService.serialize_order(order, active_items),
            server_id=server_id,
        )
        OrderLedgerService._schedule_deduction(order.id, stock_lines)
        logger.info(f"Created order {order.id} for table {table_id} with {len(lines)} items, total {order.total}")
        return order

    @staticmethod
    @transaction.atomic
    def add_items(order_id, items, server_id=None) -> Order:
        """Append items to an open order. One log entry covers the whole batch."""
        OrderLedgerService._ensure_mutable(OrderLedgerService.get_order(order_id))
        if not items:
            raise ValidationError("At least one item is required", code="no_items")

        lines = OrderLedgerService._price_lines(items)
        stock_lines = OrderLedgerService._aggregate_stock(lines)
        OrderLedgerService._check_inventory(stock_lines)

        order = OrderLedgerService._lock_order(order_id)
        OrderLedgerService._ensure_mutable(order)
        old_totals = OrderAuditService.serialize_totals(order)

        created = OrderLedgerService._create_items(order, lines)
        OrderLedgerService._apply_totals(order)

        OrderAuditService.record(
            order,
            OrderLog.Action.ADD_ITEMS,
            old_value={"totals": old_totals},
            new_value={
                "items": [OrderAuditService.serialize_item(item) for item in created],
                "totals": OrderAuditService.serialize_totals(order),
            },
            server_id=server_id,
        )
        OrderLedgerService._schedule_deduction(order.id, stock_lines)
        return order

    @staticmethod
    @transaction.atomic
    def update_item(order_id, item_id, changes, server_id=None) -> OrderItem:
        """
        Change an item's quantity, modifiers and/or notes.

        Snapshot fields and base price keep their captured values; new
        modifier selections are priced from the current modifier table.
        """
        changes = changes or {}
        allowed = {"quantity", "modifiers", "notes"}
        if not allowed.intersection(changes):
            raise ValidationError("Nothing to update", code="no_changes")

        order = OrderLedgerService._lock_order(order_id)
        OrderLedgerService._ensure_mutable(order)
        item = OrderLedgerService._get_active_item(order, item_id)

        old_item = OrderAuditService.serialize_item(item)
        old_totals = OrderAuditService.serialize_totals(order)

        quantity = item.quantity
        if "quantity" in changes:
            quantity = OrderPricingService.validate_quantity(changes["quantity"])
            if quantity < item.delivered_quantity:
                raise ValidationError(
                    f"Quantity cannot drop below the {item.delivered_quantity} already delivered",
                    code="quantity_below_delivered",
                )

        price_delta = item.price_delta
        selected_modifiers = item.selected_modifiers
        if "modifiers" in changes:
            if item.is_combo:
                raise ValidationError("Combos do not take modifiers", code="invalid_modifier")
            snapshot = CatalogSnapshotService.get_menu_item_snapshot(item.menu_item_id)
            price_delta, selected_modifiers = OrderPricingService.resolve_modifiers(snapshot, changes["modifiers"])

        amounts = OrderPricingService.price_amounts(
            quantity, item.base_price, price_delta, item.vendor_price, item.line_discount
        )
        if item.line_discount > amounts.gross_amount:
            raise ValidationError("Line discount exceeds the new line amount", code="invalid_discount")

        item.quantity = quantity
        item.price_delta = price_delta
        item.selected_modifiers = selected_modifiers
        item.line_total = amounts.line_total
        item.profit = amounts.profit
        if "notes" in changes:
            item.notes = changes["notes"] or ""
        item.save(update_fields=[
            "quantity", "price_delta", "selected_modifiers", "line_total", "profit", "notes", "updated_at",
        ])

        OrderLedgerService._apply_totals(order)

        OrderAuditService.record(
            order,
            OrderLog.Action.UPDATE_ITEM,
            old_value={"item": old_item, "totals": old_totals},
            new_value={"item": OrderAuditService.serialize_item(item), "totals": OrderAuditService.serialize_totals(order)},
            server_id=server_id,
        )
        return item

    @staticmethod
    @transaction.atomic
    def delete_item(order_id, item_id, server_id=None) -> Order:
        """Soft-delete an item. The row and its snapshot stay for the audit trail."""
        order = OrderLedgerService._lock_order(order_id)
        OrderLedgerService._ensure_mutable(order)
        item = OrderLedgerService._get_active_item(order, item_id)

        old_item = OrderAuditService.serialize_item(item)
        old_totals = OrderAuditService.serialize_totals(order)

        item.state = OrderItem.ItemState.DELETED
        item.deleted_at = timezone.now()
        item.save(update_fields=["state", "deleted_at", "updated_at"])

        OrderLedgerService._apply_totals(order)

        OrderAuditService.record(
            order,
            OrderLog.Action.DELETE,
            old_value={"item": old_item, "totals": old_totals},
            new_value={
                "order_item_id": item.id,
                "snapshot_name": item.snapshot_name,
                "state": item.state,
                "totals": OrderAuditService.serialize_totals(order),
            },
            server_id=server_id,
        )
        logger.info(f"Deleted item {item.id} ({item.snapshot_name}) from order {order.id}")
        return order

    @staticmethod
    def _transition(order_id, status, action, server_id=None) -> Order:
        order = OrderLedgerService._lock_order(order_id)
        OrderLedgerService._ensure_mutable(order)

        old_status = order.status
        order.status = status
        update_fields = ["status", "updated_at"]
        if status == Order.OrderStatus.CLOSED:
            order.closed_at = timezone.now()
            update_fields.append("closed_at")
        order.save(update_fields=update_fields)

        OrderAuditService.record(
            order,
            action,
            old_value={"status": old_status},
            new_value={
                "status": order.status,
                "closed_at": order.closed_at,
                "totals": OrderAuditService.serialize_totals(order),
            },
            server_id=server_id,
        )
        logger.info(f"Order {order.id}: {old_status} -> {order.status}")
        return order

    @staticmethod
    @transaction.atomic
    def close_order(order_id, server_id=None) -> Order:
        return OrderLedgerService._transition(order_id, Order.OrderStatus.CLOSED, OrderLog.Action.CLOSE, server_id)

    @staticmethod
    @transaction.atomic
    def cancel_order(order_id, server_id=None) -> Order:
        return OrderLedgerService._transition(order_id, Order.OrderStatus.CANCELLED, OrderLog.Action.CANCEL, server_id)

    @staticmethod
    @transaction.atomic
    def recalculate_totals(order_id, server_id=None) -> Order:
        """Repair totals from active items. Idempotent; allowed on closed orders."""
        order = OrderLedgerService._lock_order(order_id)
        old_totals = OrderAuditService.serialize_totals(order)

        OrderLedgerService._apply_totals(order)

        OrderAuditService.record(
            order,
            OrderLog.Action.RECALCULATE,
            old_value={"totals": old_totals},
            new_value={"totals": OrderAuditService.serialize_totals(order)},
            server_id=server_id,
        )
        return order
