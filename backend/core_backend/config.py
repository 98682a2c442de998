"""
Centralized access to the ledger's tunable settings.

Values come from the ``LEDGER`` dict in Django settings and fall back to
built-in defaults. Each attribute is resolved on access so overrides made at
runtime (or in tests) take effect immediately.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from core_backend.utils.money import CURRENCY_EXPONENT, MONEY_DECIMAL_PLACES

DEFAULTS: Dict[str, Any] = {
    "CURRENCY": "USD",
    "TAX_RATE": Decimal("0"),
    "INVENTORY_API_URL": None,
    "INVENTORY_TIMEOUT_SECONDS": 2.0,
    "INVENTORY_TRACKED_CATEGORIES": [
        "Alcohol",
        "Beer",
        "Soda",
        "Juice",
        "Water",
        "Bottled Drinks",
    ],
    "PENDING_ORDER_ALERT_THRESHOLD": 10,
    "ANALYTICS_CACHE_SECONDS": 60,
    "LOG_PAGE_SIZE_MAX": 200,
}


class LedgerSettings:
    """
    A lazy singleton wrapping the ``LEDGER`` settings dict.
    """

    _instance: Optional["LedgerSettings"] = None

    def __new__(cls) -> "LedgerSettings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def _get(self, name: str) -> Any:
        overrides = getattr(settings, "LEDGER", None) or {}
        return overrides.get(name, DEFAULTS[name])

    @property
    def currency(self) -> str:
        currency = str(self._get("CURRENCY")).upper()
        if currency not in CURRENCY_EXPONENT:
            raise ImproperlyConfigured(
                f"LEDGER['CURRENCY'] {currency!r} is not supported; money is stored with "
                f"{MONEY_DECIMAL_PLACES} decimal places. Use one of {sorted(CURRENCY_EXPONENT)}."
            )
        return currency

    @property
    def tax_rate(self) -> Decimal:
        return Decimal(str(self._get("TAX_RATE")))

    @property
    def inventory_api_url(self) -> Optional[str]:
        url = self._get("INVENTORY_API_URL")
        return url.rstrip("/") + "/" if url else None

    @property
    def inventory_timeout(self) -> float:
        return float(self._get("INVENTORY_TIMEOUT_SECONDS"))

    @property
    def inventory_tracked_categories(self) -> List[str]:
        return [c.strip().lower() for c in self._get("INVENTORY_TRACKED_CATEGORIES")]

    @property
    def pending_order_alert_threshold(self) -> int:
        return int(self._get("PENDING_ORDER_ALERT_THRESHOLD"))

    @property
    def analytics_cache_seconds(self) -> int:
        return int(self._get("ANALYTICS_CACHE_SECONDS"))

    @property
    def log_page_size_max(self) -> int:
        return int(self._get("LOG_PAGE_SIZE_MAX"))

    def is_inventory_tracked(self, category: Optional[str]) -> bool:
        """Pre-packaged beverage categories are stock-backed; everything else is made to order."""
        if not category:
            return False
        return category.strip().lower() in self.inventory_tracked_categories


ledger_settings = LedgerSettings()
