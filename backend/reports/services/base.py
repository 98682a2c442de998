"""
Base service class for reports with common functionality and utilities.
"""
import hashlib
import json
import logging
from datetime import datetime, time
from typing import Any, Dict, Optional, Tuple

from django.core.cache import cache
from django.utils import timezone

from core_backend.base.filters import normalize_datetime_value
from core_backend.exceptions import ValidationError

logger = logging.getLogger(__name__)


class BaseReportService:
    """Base class for all report services with common functionality."""

    @staticmethod
    def _generate_cache_key(report_type: str, parameters: Dict[str, Any]) -> str:
        """Generate a unique cache key for the given report type and parameters."""
        param_str = json.dumps(parameters, sort_keys=True, default=str)
        hash_obj = hashlib.md5(param_str.encode())
        return f"report_{report_type}_{hash_obj.hexdigest()}"

    @staticmethod
    def _get_cached_report(cache_key: str) -> Optional[Any]:
        try:
            return cache.get(cache_key)
        except Exception as e:
            logger.warning(f"Failed to retrieve cached report {cache_key}: {e}")
            return None

    @staticmethod
    def _cache_report(cache_key: str, data: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        try:
            cache.set(cache_key, data, ttl_seconds)
        except Exception as e:
            logger.warning(f"Failed to cache report {cache_key}: {e}")

    @staticmethod
    def resolve_window(start=None, end=None) -> Tuple[datetime, datetime]:
        """
        Turn optional date/datetime bounds into an aware [start, end] window.
        Missing bounds default to the start and end of today in local time.
        """
        today = timezone.localdate()
        start_dt = normalize_datetime_value(start or today, is_end=False)
        end_dt = normalize_datetime_value(end or today, is_end=True)
        if not isinstance(start_dt, datetime) or not isinstance(end_dt, datetime):
            raise ValidationError("Dates must be ISO formatted", code="invalid_date")
        if start_dt > end_dt:
            raise ValidationError("start_date must not be after end_date", code="invalid_date_range")
        return start_dt, end_dt

    @staticmethod
    def start_of_today() -> datetime:
        return timezone.make_aware(datetime.combine(timezone.localdate(), time.min))
