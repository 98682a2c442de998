"""
AuditLog: append-only record of every ledger mutation.

Entries are written inside the caller's transaction so the log is never
out of step with ledger state.
"""
import logging

from django.db import transaction

from core_backend.config import ledger_settings
from core_backend.exceptions import NotFoundError, ValidationError
from orders.models import Order, OrderItem, OrderLog

logger = logging.getLogger(__name__)


class OrderAuditService:
    """Service for writing and reading order audit entries."""

    @staticmethod
    def serialize_totals(order: Order) -> dict:
        return {
            "subtotal": order.subtotal,
            "discount_total": order.discount_total,
            "tax_total": order.tax_total,
            "total": order.total,
            "profit_total": order.profit_total,
        }

    @staticmethod
    def serialize_item(item: OrderItem) -> dict:
        return {
            "order_item_id": item.id,
            "menu_item_id": item.menu_item_id,
            "combo_id": item.combo_id,
            "snapshot_name": item.snapshot_name,
            "snapshot_sku": item.snapshot_sku,
            "snapshot_category": item.snapshot_category,
            "snapshot_version": item.snapshot_version,
            "quantity": item.quantity,
            "delivered_quantity": item.delivered_quantity,
            "base_price": item.base_price,
            "price_delta": item.price_delta,
            "line_discount": item.line_discount,
            "line_total": item.line_total,
            "profit": item.profit,
            "selected_modifiers": item.selected_modifiers,
            "notes": item.notes,
            "state": item.state,
        }

    @staticmethod
    def serialize_order(order: Order, items=None) -> dict:
        if items is None:
            items = order.items.active()
        return {
            "order_id": order.id,
            "session_id": order.session_id,
            "billing_id": order.billing_id,
            "table_id": order.table_id,
            "server_id": order.server_id,
            "status": order.status,
            "delivery_status": order.delivery_status,
            "totals": OrderAuditService.serialize_totals(order),
            "items": [OrderAuditService.serialize_item(item) for item in items],
        }

    @staticmethod
    def record(order: Order, action: str, old_value=None, new_value=None, server_id=None) -> OrderLog:
        if not transaction.get_connection().in_atomic_block:
            raise RuntimeError("Order log entries must be written inside the mutation's transaction")

        entry = OrderLog.objects.create(
            order=order,
            action=action,
            old_value=old_value,
            new_value=new_value,
            server_id=server_id or "",
        )
        logger.info(f"Order {order.id}: {action} (log {entry.id})")
        return entry

    @staticmethod
    def list_logs(order_id: int, page: int = 1, page_size: int = 50) -> dict:
        """Newest-first page of an order's log; page_size is clamped to the configured maximum."""
        try:
            exists = Order.objects.filter(pk=order_id).exists()
        except (TypeError, ValueError):
            exists = False
        if not exists:
            raise NotFoundError(f"Order {order_id} not found", code="order_not_found")

        try:
            page = int(page)
            page_size = int(page_size)
        except (TypeError, ValueError):
            raise ValidationError("page and page_size must be integers", code="invalid_page")
        page = max(1, page)
        page_size = min(max(1, page_size), ledger_settings.log_page_size_max)

        queryset = OrderLog.objects.filter(order_id=order_id).order_by("-created_at", "-id")
        total = queryset.count()
        offset = (page - 1) * page_size
        return {
            "results": list(queryset[offset:offset + page_size]),
            "total": total,
            "page": page,
            "page_size": page_size,
        }
