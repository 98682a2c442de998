"""
Order Analytics Tests

These tests verify the dashboard rollups: summary counts and revenue, the
status histogram, revenue trends, the pending-order alert and graceful
degradation when the database fails.
"""
import pytest
from datetime import datetime, time, timedelta
from decimal import Decimal
from unittest.mock import patch

from django.db import DatabaseError
from django.utils import timezone
from rest_framework import status

from core_backend.exceptions import ValidationError
from orders.models import Order
from orders.services import OrderDeliveryService, OrderLedgerService
from reports.services import OrderAnalyticsService


def _create(session_id, menu_item, quantity=1, table_id='T1'):
    return OrderLedgerService.create_order(
        session_id=session_id, table_id=table_id, server_id='srv-1',
        items=[{'menu_item_id': menu_item.id, 'quantity': quantity}],
    )


@pytest.fixture
def mixed_orders(session_id, burger, fries):
    """
    Four orders today:
    - waiting (10.00)
    - in progress (10.00)
    - delivered and closed (20.00)
    - cancelled (5.00)
    """
    waiting = _create(session_id, burger)

    in_progress = _create(session_id, fries, quantity=2)
    item = in_progress.items.get()
    OrderDeliveryService.mark_delivered(in_progress.id, [{'order_item_id': item.id, 'delivered_quantity': 1}])

    closed = _create(session_id, burger, quantity=2)
    item = closed.items.get()
    OrderDeliveryService.mark_delivered(closed.id, [{'order_item_id': item.id, 'delivered_quantity': 2}])
    OrderLedgerService.close_order(closed.id)

    cancelled = _create(session_id, fries)
    OrderLedgerService.cancel_order(cancelled.id)

    return {'waiting': waiting, 'in_progress': in_progress, 'closed': closed, 'cancelled': cancelled}


@pytest.mark.django_db
class TestOrderSummary:
    """Test dashboard summary figures"""

    def test_summary(self, mixed_orders):
        """
        CRITICAL: Revenue excludes cancelled orders

        Business Impact: Dashboard revenue must match what was actually billed
        """
        summary = OrderAnalyticsService.get_summary(use_cache=False)

        assert summary['total_orders'] == 3
        assert summary['total_revenue'] == Decimal('40.00')
        assert summary['average_order_value'] == Decimal('13.33')
        assert summary['completed_orders'] == 1
        assert summary['completion_rate'] == 33.3
        assert summary['pending_orders'] == 1
        assert summary['in_progress_orders'] == 1
        assert summary['peak_hour'] == timezone.localtime().hour
        assert summary['alert_count'] == 0
        assert summary['alert_message'] is None

    def test_empty_window(self, db):
        summary = OrderAnalyticsService.get_summary(use_cache=False)
        assert summary == OrderAnalyticsService.empty_summary()

    def test_pending_alert_above_threshold(self, settings, session_id, fries):
        settings.LEDGER = {**settings.LEDGER, 'PENDING_ORDER_ALERT_THRESHOLD': 2}
        for _ in range(3):
            _create(session_id, fries)

        summary = OrderAnalyticsService.get_summary(use_cache=False)

        assert summary['alert_count'] == 3
        assert '3 orders are waiting' in summary['alert_message']

    def test_pending_at_threshold_does_not_alert(self, settings, session_id, fries):
        settings.LEDGER = {**settings.LEDGER, 'PENDING_ORDER_ALERT_THRESHOLD': 2}
        for _ in range(2):
            _create(session_id, fries)

        assert OrderAnalyticsService.get_summary(use_cache=False)['alert_count'] == 0

    def test_orders_outside_window_are_excluded(self, session_id, fries):
        old = _create(session_id, fries)
        Order.objects.filter(pk=old.id).update(created_at=timezone.now() - timedelta(days=3))

        summary = OrderAnalyticsService.get_summary(use_cache=False)

        assert summary['total_orders'] == 0
        assert summary['pending_orders'] == 1, "The open backlog is not limited to the window"

    def test_summary_is_cached(self, session_id, fries):
        first = OrderAnalyticsService.get_summary()
        _create(session_id, fries)

        assert OrderAnalyticsService.get_summary() == first
        assert OrderAnalyticsService.get_summary(use_cache=False)['total_orders'] == 1

    def test_database_failure_degrades_to_empty_summary(self, db):
        with patch.object(OrderAnalyticsService, '_window_orders', side_effect=DatabaseError('gone')):
            summary = OrderAnalyticsService.get_summary(use_cache=False)
        assert summary == OrderAnalyticsService.empty_summary()

    def test_inverted_window_is_rejected(self, db):
        today = timezone.localdate()
        with pytest.raises(ValidationError):
            OrderAnalyticsService.get_summary(start=today, end=today - timedelta(days=1))


@pytest.mark.django_db
class TestStatusSummary:
    """Test lifecycle histogram"""

    def test_histogram(self, mixed_orders):
        histogram = OrderAnalyticsService.get_status_summary(use_cache=False)

        counts = {row['status']: row['count'] for row in histogram}
        assert [row['status'] for row in histogram] == ['waiting', 'in_progress', 'completed', 'closed', 'cancelled']
        assert counts == {'waiting': 1, 'in_progress': 1, 'completed': 0, 'closed': 1, 'cancelled': 1}
        assert sum(row['percentage'] for row in histogram) == 100.0

    def test_database_failure_degrades_to_empty(self, db):
        with patch.object(OrderAnalyticsService, '_window_orders', side_effect=DatabaseError('gone')):
            assert OrderAnalyticsService.get_status_summary(use_cache=False) == []


@pytest.mark.django_db
class TestTrends:
    """Test revenue trend series"""

    def test_daily_trend(self, mixed_orders):
        series = OrderAnalyticsService.get_trends(use_cache=False)

        assert len(series) == 1
        assert series[0]['date'] == timezone.localdate().isoformat()
        assert series[0]['order_count'] == 3
        assert series[0]['revenue'] == Decimal('40.00')

    def test_hourly_trend(self, session_id, burger, fries):
        """Orders group by local hour of creation"""
        today = timezone.localdate()
        placed = [
            (burger, datetime.combine(today, time(9, 15))),
            (fries, datetime.combine(today, time(9, 45))),
            (fries, datetime.combine(today, time(11, 5))),
        ]
        for menu_item, created_at in placed:
            created = _create(session_id, menu_item)
            Order.objects.filter(pk=created.id).update(created_at=timezone.make_aware(created_at))

        series = OrderAnalyticsService.get_trends(bucket='hour', use_cache=False)

        assert [point['date'] for point in series] == [
            timezone.make_aware(datetime.combine(today, time(9))).isoformat(),
            timezone.make_aware(datetime.combine(today, time(11))).isoformat(),
        ]
        assert [point['order_count'] for point in series] == [2, 1]
        assert series[0]['revenue'] == Decimal('15.00')
        assert series[0]['average_order_value'] == Decimal('7.50')
        assert series[1]['revenue'] == Decimal('5.00')

    def test_invalid_bucket(self, db):
        with pytest.raises(ValidationError):
            OrderAnalyticsService.get_trends(bucket='week')

    def test_database_failure_degrades_to_empty(self, db):
        with patch.object(OrderAnalyticsService, '_window_orders', side_effect=DatabaseError('gone')):
            assert OrderAnalyticsService.get_trends(use_cache=False) == []


@pytest.mark.django_db
class TestRecentActivity:
    def test_newest_first(self, order):
        OrderLedgerService.close_order(order.id)

        activity = OrderAnalyticsService.get_recent_activity(limit=5)

        assert [a['type'] for a in activity] == ['close', 'created']
        assert activity[0]['description'] == f"Order {order.id} at table T1"


@pytest.mark.django_db
class TestAnalyticsEndpoints:
    """Test analytics API"""

    def test_summary_endpoint(self, api_client, mixed_orders):
        response = api_client.get('/api/reports/orders/summary/', {'use_cache': 'false'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_revenue'] == '40.00'
        assert response.data['total_orders'] == 3

    def test_status_summary_endpoint(self, api_client, mixed_orders):
        response = api_client.get('/api/reports/orders/status-summary/')
        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 5

    def test_trends_endpoint(self, api_client, mixed_orders):
        response = api_client.get('/api/reports/orders/trends/', {'bucket': 'hour'})
        assert response.status_code == status.HTTP_200_OK
        assert sum(point['order_count'] for point in response.data) == 3

    def test_same_day_window_covers_the_whole_day(self, api_client, session_id, fries):
        """
        CRITICAL: start_date=end_date=today includes today's orders

        Business Impact: A single-day report must not come back empty
        """
        _create(session_id, fries)
        today = timezone.localdate().isoformat()

        response = api_client.get('/api/reports/orders/summary/', {
            'start_date': today, 'end_date': today, 'use_cache': 'false',
        })

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_orders'] == 1
        assert response.data['total_revenue'] == '5.00'

    def test_explicit_window_excludes_other_days(self, api_client, session_id, fries):
        old = _create(session_id, fries)
        Order.objects.filter(pk=old.id).update(created_at=timezone.now() - timedelta(days=3))
        _create(session_id, fries)
        yesterday = (timezone.localdate() - timedelta(days=1)).isoformat()
        today = timezone.localdate().isoformat()

        response = api_client.get('/api/reports/orders/trends/', {
            'start_date': yesterday, 'end_date': today, 'use_cache': 'false',
        })

        assert response.status_code == status.HTTP_200_OK
        assert [point['order_count'] for point in response.data] == [1]
        assert response.data[0]['date'] == today

    def test_datetime_bounds_are_kept(self, api_client, session_id, fries):
        _create(session_id, fries)
        start = (timezone.now() - timedelta(hours=1)).isoformat()
        end = (timezone.now() + timedelta(hours=1)).isoformat()

        response = api_client.get('/api/reports/orders/summary/', {
            'start_date': start, 'end_date': end, 'use_cache': 'false',
        })

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_orders'] == 1

    @pytest.mark.parametrize('params', [
        {'start_date': 'yesterday'},
        {'start_date': '2026-10-17', 'end_date': '2026-10-16'},
    ])
    def test_invalid_dates(self, api_client, db, params):
        response = api_client.get('/api/reports/orders/summary/', params)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_invalid_parameters(self, api_client, db):
        response = api_client.get('/api/reports/orders/trends/', {'bucket': 'year'})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_recent_activity_endpoint(self, api_client, order):
        response = api_client.get('/api/reports/orders/recent-activity/', {'limit': 1})
        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
