"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest
from django.core.cache import cache

from core_backend.celery import app as celery_app


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def clear_cache_after_test():
    """
    Clear Django cache after each test.

    Analytics responses are cached; a stale entry from one test must not
    answer another test's query.
    """
    yield
    cache.clear()


@pytest.fixture(autouse=True, scope="session")
def celery_eager():
    """
    Run Celery tasks inline during tests.

    Outside tests tasks go to the broker so inventory deductions never run
    inside the request.
    """
    celery_app.conf.CELERY_TASK_ALWAYS_EAGER = True
    yield
    celery_app.conf.CELERY_TASK_ALWAYS_EAGER = False


@pytest.fixture(autouse=True)
def ledger_settings_defaults(settings):
    """
    Pin the ledger settings every test starts from.

    No inventory service is configured and tax is zero, so totals equal the
    sum of line totals unless a test overrides them.
    """
    settings.LEDGER = {
        "CURRENCY": "USD",
        "TAX_RATE": 0,
        "INVENTORY_API_URL": None,
        "INVENTORY_TIMEOUT_SECONDS": 0.5,
        "INVENTORY_TRACKED_CATEGORIES": ["Soda", "Beer"],
        "PENDING_ORDER_ALERT_THRESHOLD": 10,
        "ANALYTICS_CACHE_SECONDS": 60,
        "LOG_PAGE_SIZE_MAX": 50,
    }
    return settings.LEDGER


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide DRF API client for API tests.

    Usage:
        def test_my_api(api_client):
            response = api_client.get('/api/orders/')
            assert response.status_code == 200
    """
    from rest_framework.test import APIClient
    return APIClient()


# ============================================================================
# IMPORT ALL FIXTURES FROM core_backend/tests/fixtures.py
# ============================================================================
from core_backend.tests.fixtures import *
