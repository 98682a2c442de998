"""
AnalyticsAggregator: read-only dashboard rollups over committed ledger state.

Results may be cached for a bounded window. Database failures are logged and
degrade to zeroed or empty results so one failing widget never takes down
the dashboard.
"""
import logging
import time
from decimal import Decimal
from typing import Any, Dict, List

from django.db import DatabaseError
from django.db.models import Count, Q, Sum, Value
from django.db.models.functions import Coalesce, TruncDate, TruncHour
from django.utils import timezone

from core_backend.config import ledger_settings
from core_backend.exceptions import ValidationError
from core_backend.utils.money import ZERO, quantize
from orders.models import Order, OrderLog
from .base import BaseReportService

logger = logging.getLogger(__name__)

# Lifecycle stages shown on the status histogram, in display order
STATUS_STAGES = ["waiting", "in_progress", "completed", "closed", "cancelled"]

TREND_BUCKETS = {
    "day": TruncDate,
    "hour": TruncHour,
}


class OrderAnalyticsService(BaseReportService):
    """Service for order dashboard analytics."""

    @staticmethod
    def _cached(report_type: str, parameters: Dict[str, Any], builder, use_cache: bool):
        cache_key = OrderAnalyticsService._generate_cache_key(report_type, parameters)
        if use_cache:
            cached = OrderAnalyticsService._get_cached_report(cache_key)
            if cached is not None:
                return cached

        data = builder()
        if use_cache:
            OrderAnalyticsService._cache_report(cache_key, data, ledger_settings.analytics_cache_seconds)
        return data

    @staticmethod
    def _window_orders(start, end):
        return Order.objects.filter(created_at__gte=start, created_at__lte=end)

    @staticmethod
    def _percentage(part: int, whole: int) -> float:
        return round(part * 100.0 / whole, 1) if whole else 0.0

    # --- summary -----------------------------------------------------------

    @staticmethod
    def empty_summary() -> Dict[str, Any]:
        return {
            "total_orders": 0,
            "total_revenue": Decimal("0.00"),
            "average_order_value": Decimal("0.00"),
            "completion_rate": 0.0,
            "pending_orders": 0,
            "in_progress_orders": 0,
            "completed_orders": 0,
            "average_prep_time_minutes": 0.0,
            "peak_hour": None,
            "alert_count": 0,
            "alert_message": None,
        }

    @staticmethod
    def get_summary(start=None, end=None, use_cache: bool = True) -> Dict[str, Any]:
        """
        Counts and revenue for the window (defaults to today). Pending and
        in-progress counts describe the current open-order backlog.
        """
        start, end = OrderAnalyticsService.resolve_window(start, end)
        return OrderAnalyticsService._cached(
            "order_summary",
            {"start": start, "end": end},
            lambda: OrderAnalyticsService._build_summary(start, end),
            use_cache,
        )

    @staticmethod
    def _build_summary(start, end) -> Dict[str, Any]:
        started = time.time()
        try:
            currency = ledger_settings.currency
            live = OrderAnalyticsService._window_orders(start, end).exclude(status=Order.OrderStatus.CANCELLED)
            stats = live.aggregate(
                total_orders=Count("id"),
                total_revenue=Coalesce(Sum("total"), Value(Decimal("0.00"))),
                completed_orders=Count("id", filter=Q(delivery_status=Order.DeliveryStatus.COMPLETED)),
            )
            backlog = Order.objects.filter(status=Order.OrderStatus.OPEN).aggregate(
                pending=Count("id", filter=Q(delivery_status=Order.DeliveryStatus.WAITING)),
                in_progress=Count("id", filter=Q(delivery_status=Order.DeliveryStatus.IN_PROGRESS)),
            )

            total_orders = stats["total_orders"]
            revenue = quantize(currency, stats["total_revenue"])
            average = quantize(currency, revenue / total_orders) if total_orders else Decimal("0.00")

            prep_minutes = [
                (delivered - created).total_seconds() / 60
                for created, delivered in live.filter(delivered_at__isnull=False).values_list("created_at", "delivered_at")
            ]
            average_prep = round(sum(prep_minutes) / len(prep_minutes), 1) if prep_minutes else 0.0

            hours = {}
            for created in live.values_list("created_at", flat=True):
                hour = timezone.localtime(created).hour
                hours[hour] = hours.get(hour, 0) + 1
            peak_hour = max(hours, key=lambda h: (hours[h], -h)) if hours else None

            pending = backlog["pending"]
            threshold = ledger_settings.pending_order_alert_threshold
            alert_count = pending if pending > threshold else 0
            alert_message = (
                f"{pending} orders are waiting, above the threshold of {threshold}" if alert_count else None
            )
        except DatabaseError:
            logger.exception("Order summary failed; returning empty summary")
            return OrderAnalyticsService.empty_summary()

        logger.info(f"Order summary for {start:%Y-%m-%d} to {end:%Y-%m-%d} built in {time.time() - started:.2f}s")
        return {
            "total_orders": total_orders,
            "total_revenue": revenue,
            "average_order_value": average,
            "completion_rate": OrderAnalyticsService._percentage(stats["completed_orders"], total_orders),
            "pending_orders": pending,
            "in_progress_orders": backlog["in_progress"],
            "completed_orders": stats["completed_orders"],
            "average_prep_time_minutes": average_prep,
            "peak_hour": peak_hour,
            "alert_count": alert_count,
            "alert_message": alert_message,
        }

    # --- status histogram --------------------------------------------------

    @staticmethod
    def get_status_summary(start=None, end=None, use_cache: bool = True) -> List[Dict[str, Any]]:
        """
        Histogram of lifecycle stages: open orders by delivery status, then
        closed and cancelled.
        """
        start, end = OrderAnalyticsService.resolve_window(start, end)
        return OrderAnalyticsService._cached(
            "order_status_summary",
            {"start": start, "end": end},
            lambda: OrderAnalyticsService._build_status_summary(start, end),
            use_cache,
        )

    @staticmethod
    def _build_status_summary(start, end) -> List[Dict[str, Any]]:
        try:
            orders = OrderAnalyticsService._window_orders(start, end)
            counts = dict.fromkeys(STATUS_STAGES, 0)
            rows = orders.values("status", "delivery_status").annotate(count=Count("id"))
            for row in rows:
                stage = row["delivery_status"] if row["status"] == Order.OrderStatus.OPEN else row["status"]
                counts[stage] += row["count"]
        except DatabaseError:
            logger.exception("Order status summary failed; returning empty histogram")
            return []

        total = sum(counts.values())
        return [
            {"status": stage, "count": counts[stage], "percentage": OrderAnalyticsService._percentage(counts[stage], total)}
            for stage in STATUS_STAGES
        ]

    # --- trends ------------------------------------------------------------

    @staticmethod
    def get_trends(start=None, end=None, bucket: str = "day", use_cache: bool = True) -> List[Dict[str, Any]]:
        if bucket not in TREND_BUCKETS:
            raise ValidationError(f"bucket must be one of {sorted(TREND_BUCKETS)}", code="invalid_bucket")
        start, end = OrderAnalyticsService.resolve_window(start, end)
        return OrderAnalyticsService._cached(
            "order_trends",
            {"start": start, "end": end, "bucket": bucket},
            lambda: OrderAnalyticsService._build_trends(start, end, bucket),
            use_cache,
        )

    @staticmethod
    def _build_trends(start, end, bucket: str) -> List[Dict[str, Any]]:
        currency = ledger_settings.currency
        trunc = TREND_BUCKETS[bucket]
        try:
            rows = (
                OrderAnalyticsService._window_orders(start, end)
                .exclude(status=Order.OrderStatus.CANCELLED)
                .annotate(period=trunc("created_at", tzinfo=timezone.get_current_timezone()))
                .values("period")
                .annotate(order_count=Count("id"), revenue=Coalesce(Sum("total"), Value(Decimal("0.00"))))
                .order_by("period")
            )
            rows = list(rows)
        except DatabaseError:
            logger.exception("Order trends failed; returning empty series")
            return []

        series = []
        for row in rows:
            revenue = quantize(currency, row["revenue"])
            count = row["order_count"]
            series.append({
                "date": row["period"].isoformat(),
                "order_count": count,
                "revenue": revenue,
                "average_order_value": quantize(currency, revenue / count) if count else ZERO,
            })
        return series

    # --- recent activity ---------------------------------------------------

    @staticmethod
    def get_recent_activity(limit: int = 10) -> List[Dict[str, Any]]:
        limit = min(max(1, int(limit)), 100)
        try:
            logs = list(OrderLog.objects.select_related("order").order_by("-created_at", "-id")[:limit])
        except DatabaseError:
            logger.exception("Recent activity failed; returning empty list")
            return []

        return [
            {
                "title": OrderLog.Action(log.action).label if log.action in OrderLog.Action.values else log.action,
                "description": f"Order {log.order_id} at table {log.order.table_id}",
                "timestamp": log.created_at,
                "type": log.action,
            }
            for log in logs
        ]
