"""
DeliveryTracker: per-item delivered counters and the order-level delivery state.

Item states are derived from the counters:
    pending (0) -> partially_delivered (0 < n < quantity) -> delivered (n == quantity)
Order states: waiting -> in_progress -> completed.
"""
from collections import OrderedDict
import logging

from django.db import transaction
from django.utils import timezone

from core_backend.exceptions import ConflictError, NotFoundError, ValidationError
from orders.models import Order, OrderLog
from .audit_service import OrderAuditService

logger = logging.getLogger(__name__)


class OrderDeliveryService:
    """Service for tracking item delivery."""

    @staticmethod
    def derive_delivery_status(items) -> str:
        items = list(items)
        delivered = [item.delivered_quantity for item in items]
        if not items or not any(delivered):
            return Order.DeliveryStatus.WAITING
        if all(item.delivered_quantity >= item.quantity for item in items):
            return Order.DeliveryStatus.COMPLETED
        return Order.DeliveryStatus.IN_PROGRESS

    @staticmethod
    def refresh_delivery_status(order: Order, items=None) -> None:
        """Recompute ``delivery_status`` and ``delivered_at`` in memory; the caller saves."""
        if items is None:
            items = order.items.active()
        status = OrderDeliveryService.derive_delivery_status(items)
        order.delivery_status = status
        if status == Order.DeliveryStatus.COMPLETED:
            order.delivered_at = order.delivered_at or timezone.now()
        else:
            order.delivered_at = None

    @staticmethod
    def _lock_order(order_id) -> Order:
        try:
            return Order.objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, ValueError):
            raise NotFoundError(f"Order {order_id} not found", code="order_not_found")

    @staticmethod
    def _collect_deliveries(deliveries) -> "OrderedDict[int, int]":
        if not deliveries:
            raise ValidationError("At least one delivery is required", code="no_deliveries")

        totals = OrderedDict()
        for entry in deliveries:
            item_id = entry.get("order_item_id")
            quantity = entry.get("delivered_quantity")
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise ValidationError(
                    f"Delivered quantity for item {item_id} must be a positive integer",
                    code="invalid_quantity",
                )
            totals[item_id] = totals.get(item_id, 0) + quantity
        return totals

    @staticmethod
    @transaction.atomic
    def mark_delivered(order_id, deliveries, server_id=None) -> Order:
        """
        Add delivered quantities to items. ``deliveries`` is a list of
        {"order_item_id", "delivered_quantity"} dicts; repeated ids are summed.
        Every entry is validated before any counter changes.
        """
        requested = OrderDeliveryService._collect_deliveries(deliveries)
        order = OrderDeliveryService._lock_order(order_id)
        if order.status == Order.OrderStatus.CANCELLED:
            raise ConflictError(f"Order {order.id} is cancelled", code="order_cancelled")

        items = {item.id: item for item in order.items.active()}
        for item_id, quantity in requested.items():
            item = items.get(item_id)
            if item is None:
                raise NotFoundError(f"Item {item_id} not found on order {order.id}", code="item_not_found")
            if item.delivered_quantity + quantity > item.quantity:
                raise ValidationError(
                    f"Cannot deliver {quantity} of {item.snapshot_name}: "
                    f"{item.delivered_quantity} of {item.quantity} already delivered",
                    code="over_delivery",
                )

        old_status = order.delivery_status
        changed = []
        for item_id, quantity in requested.items():
            item = items[item_id]
            before = item.delivered_quantity
            item.delivered_quantity += quantity
            item.save(update_fields=["delivered_quantity", "updated_at"])
            changed.append({
                "order_item_id": item.id,
                "snapshot_name": item.snapshot_name,
                "previous_delivered_quantity": before,
                "delivered_quantity": item.delivered_quantity,
                "quantity": item.quantity,
                "delivery_state": item.delivery_state,
            })

        OrderDeliveryService.refresh_delivery_status(order, items.values())
        order.save(update_fields=["delivery_status", "delivered_at", "updated_at"])

        OrderAuditService.record(
            order,
            OrderLog.Action.MARK_DELIVERED,
            old_value={"delivery_status": old_status},
            new_value={"delivery_status": order.delivery_status, "items": changed},
            server_id=server_id,
        )
        logger.info(f"Order {order.id} delivery: {old_status} -> {order.delivery_status}")
        return order

    @staticmethod
    @transaction.atomic
    def mark_waiting(order_id, server_id=None) -> Order:
        """Return the order to the kitchen queue. Item counters are left alone."""
        order = OrderDeliveryService._lock_order(order_id)
        if order.status == Order.OrderStatus.CANCELLED:
            raise ConflictError(f"Order {order.id} is cancelled", code="order_cancelled")

        old_status = order.delivery_status
        order.delivery_status = Order.DeliveryStatus.WAITING
        order.delivered_at = None
        order.save(update_fields=["delivery_status", "delivered_at", "updated_at"])

        OrderAuditService.record(
            order,
            OrderLog.Action.MARK_WAITING,
            old_value={"delivery_status": old_status},
            new_value={"delivery_status": order.delivery_status},
            server_id=server_id,
        )
        return order
