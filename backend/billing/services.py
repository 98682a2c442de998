"""
BillingAggregator: consolidates sessions and their orders into one payable
entity, and moves sessions between tables without breaking that link.
"""
from collections import Counter
from decimal import Decimal
import logging
import uuid

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count, Q, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from core_backend.exceptions import ConflictError, NotFoundError, ValidationError
from orders.models import Order, OrderItem
from .models import Billing, TableSession

logger = logging.getLogger(__name__)

ZERO = Value(Decimal("0.00"))


class BillingService:
    """Service for billing lifecycle and aggregation."""

    @staticmethod
    def get_billing(billing_id) -> Billing:
        try:
            return Billing.objects.get(pk=billing_id)
        except (Billing.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(f"Billing {billing_id} not found", code="billing_not_found")

    @staticmethod
    def billing_orders(billing: Billing, session_ids=None):
        """Non-cancelled orders reached through the billing's sessions or its id."""
        if session_ids is None:
            session_ids = list(billing.sessions.values_list("session_id", flat=True))
        return (
            Order.objects.filter(Q(session_id__in=session_ids) | Q(billing_id=billing.billing_id))
            .exclude(status=Order.OrderStatus.CANCELLED)
        )

    @staticmethod
    def summarize(billing_id) -> dict:
        """Consolidated, read-only view of a billing. Never writes."""
        billing = BillingService.get_billing(billing_id)
        sessions = list(billing.sessions.order_by("start_time"))
        orders = BillingService.billing_orders(billing, [s.session_id for s in sessions])

        totals = orders.aggregate(
            subtotal=Coalesce(Sum("subtotal"), ZERO),
            discount_amount=Coalesce(Sum("discount_total"), ZERO),
            tax_amount=Coalesce(Sum("tax_total"), ZERO),
            total_amount=Coalesce(Sum("total"), ZERO),
            profit_total=Coalesce(Sum("profit_total"), ZERO),
            total_orders=Count("id"),
        )
        item_stats = OrderItem.objects.active().filter(order__in=orders).aggregate(
            total_items=Coalesce(Sum("quantity"), Value(0)),
        )

        active = [s for s in sessions if s.status == TableSession.SessionStatus.ACTIVE]
        moved = [s for s in sessions if s.status == TableSession.SessionStatus.MOVED]

        activity = [billing.updated_at]
        activity += [s.end_time or s.start_time for s in sessions]
        last_order = orders.order_by("-updated_at").values_list("updated_at", flat=True).first()
        if last_order:
            activity.append(last_order)
        last_activity = max(activity)

        if sessions:
            started = sessions[0].start_time
            ended = timezone.now() if active else max(s.end_time or s.start_time for s in sessions)
        else:
            started = ended = billing.created_at
        total_duration_minutes = int((ended - started).total_seconds() // 60)

        servers = Counter(s.server_id for s in sessions if s.server_id)
        primary_server = servers.most_common(1)[0][0] if servers else None

        return {
            "billing_id": str(billing.billing_id),
            "display_id": billing.display_id,
            "customer_name": billing.customer_name,
            "status": billing.status,
            "total_sessions": len(sessions),
            "active_sessions": len(active),
            "moved_sessions": len(moved),
            "total_orders": totals["total_orders"],
            "total_items": item_stats["total_items"],
            "subtotal": totals["subtotal"],
            "discount_amount": totals["discount_amount"],
            "tax_amount": totals["tax_amount"],
            "total_amount": totals["total_amount"],
            "profit_total": totals["profit_total"],
            "created_at": billing.created_at,
            "last_activity": last_activity,
            "total_duration_minutes": total_duration_minutes,
            "current_tables": [s.table_id for s in active],
            "movement_history": [s.movement_label for s in sessions if s.movement_label],
            "primary_server": primary_server,
        }

    @staticmethod
    @transaction.atomic
    def create_billing(customer_name: str = "", customer_contact: str = "") -> Billing:
        billing = Billing.objects.create(
            customer_name=customer_name or "",
            customer_contact=customer_contact or "",
        )
        logger.info(f"Opened billing {billing.display_id}")
        return billing

    @staticmethod
    def _ensure_table_free(table_id: str) -> None:
        if TableSession.objects.filter(table_id=table_id, status=TableSession.SessionStatus.ACTIVE).exists():
            raise ConflictError(f"Table {table_id} already has an active session", code="table_occupied")

    @staticmethod
    def _open_session(billing: Billing, table_id: str, **fields) -> TableSession:
        try:
            with transaction.atomic():
                return TableSession.objects.create(billing=billing, table_id=table_id, **fields)
        except IntegrityError:
            raise ConflictError(f"Table {table_id} already has an active session", code="table_occupied")

    @staticmethod
    @transaction.atomic
    def start_session(billing_id, table_id: str, server_id: str = "", server_name: str = "") -> TableSession:
        if not table_id:
            raise ValidationError("table_id is required", code="table_required")
        billing = BillingService.get_billing(billing_id)
        if billing.status != Billing.BillingStatus.OPEN:
            raise ConflictError(f"Billing {billing.display_id} is {billing.status}", code="billing_not_open")

        BillingService._ensure_table_free(table_id)
        session = BillingService._open_session(
            billing, table_id, server_id=server_id or "", server_name=server_name or ""
        )
        logger.info(f"Billing {billing.display_id}: session {session.session_id} started at table {table_id}")
        return session

    @staticmethod
    @transaction.atomic
    def move_session(session_id, from_table: str, to_table: str, server_id: str = None) -> TableSession:
        """
        Close the session's binding to ``from_table`` and open a new session
        at ``to_table`` under the same billing. Orders keep their session id,
        so they stay with the billing.
        """
        if not to_table or not from_table:
            raise ValidationError("from_table and to_table are required", code="table_required")
        if from_table == to_table:
            raise ValidationError("Source and destination tables are the same", code="same_table")

        try:
            uuid.UUID(str(session_id))
            session = TableSession.objects.select_for_update().select_related("billing").get(pk=session_id)
        except (TableSession.DoesNotExist, ValueError):
            raise NotFoundError(f"Session {session_id} not found", code="session_not_found")

        if session.status != TableSession.SessionStatus.ACTIVE:
            raise ConflictError(f"Session {session_id} is {session.status}", code="session_not_active")
        if session.table_id != from_table:
            raise ConflictError(
                f"Session {session_id} is at table {session.table_id}, not {from_table}",
                code="session_table_mismatch",
            )
        BillingService._ensure_table_free(to_table)

        now = timezone.now()
        session.status = TableSession.SessionStatus.MOVED
        session.end_time = now
        session.destination_table_id = to_table
        session.moved_at = now
        session.save(update_fields=["status", "end_time", "destination_table_id", "moved_at"])

        new_session = BillingService._open_session(
            session.billing,
            to_table,
            server_id=server_id or session.server_id,
            server_name=session.server_name,
            original_table_id=from_table,
        )
        logger.info(
            f"Billing {session.billing.display_id}: moved from table {from_table} to {to_table} "
            f"(session {session.session_id} -> {new_session.session_id})"
        )
        return new_session

    @staticmethod
    @transaction.atomic
    def close_billing(billing_id) -> Billing:
        """Persist the consolidated totals, end active sessions and close the billing."""
        billing = BillingService.get_billing(billing_id)
        billing = Billing.objects.select_for_update().get(pk=billing.pk)
        if billing.status != Billing.BillingStatus.OPEN:
            raise ConflictError(f"Billing {billing.display_id} is {billing.status}", code="billing_not_open")

        summary = BillingService.summarize(billing.billing_id)
        now = timezone.now()
        billing.subtotal = summary["subtotal"]
        billing.tax_amount = summary["tax_amount"]
        billing.discount_amount = summary["discount_amount"]
        billing.total_amount = summary["total_amount"]
        billing.status = Billing.BillingStatus.CLOSED
        billing.closed_at = now
        billing.save()

        billing.sessions.filter(status=TableSession.SessionStatus.ACTIVE).update(
            status=TableSession.SessionStatus.CLOSED, end_time=now
        )
        logger.info(f"Closed billing {billing.display_id}, total {billing.total_amount}")
        return billing
