import django_filters
from django.utils import timezone
from django.utils.dateparse import parse_datetime, parse_date
from datetime import datetime, time


def normalize_datetime_value(value, *, is_end=False):
    """
    Normalize a date or datetime string to a timezone-aware datetime.

    Date-only values become the start of that day, or the end of it when
    ``is_end`` is True.

        normalize_datetime_value("2025-11-11", is_end=True)   # 2025-11-11 23:59:59.999999
        normalize_datetime_value("2025-11-11T10:30:00Z")      # unchanged
    """
    if not value:
        return value

    if isinstance(value, datetime):
        if timezone.is_naive(value):
            return timezone.make_aware(value)
        return value

    if hasattr(value, 'year'):
        dt = datetime.combine(value, time.max if is_end else time.min)
        return timezone.make_aware(dt)

    if isinstance(value, str):
        dt = parse_datetime(value)
        if dt:
            if timezone.is_naive(dt):
                return timezone.make_aware(dt)
            return dt

        date_obj = parse_date(value)
        if date_obj:
            dt = datetime.combine(date_obj, time.max if is_end else time.min)
            return timezone.make_aware(dt)

    return value


class FlexibleDateTimeFilter(django_filters.DateTimeFilter):
    """
    A DateTimeFilter where a date-only upper bound ("2025-11-11" with lte/lt)
    covers the whole day.
    """

    def filter(self, qs, value):
        if isinstance(value, datetime) and value.time() == time(0, 0, 0) and self.lookup_expr in ['lte', 'lt']:
            value = normalize_datetime_value(value.date(), is_end=True)
        return super().filter(qs, value)


class BaseFilterSet(django_filters.FilterSet):
    """Base filter set with the common created/updated date range filters."""

    created_after = FlexibleDateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_before = FlexibleDateTimeFilter(field_name='created_at', lookup_expr='lte')
    updated_after = FlexibleDateTimeFilter(field_name='updated_at', lookup_expr='gte')
    updated_before = FlexibleDateTimeFilter(field_name='updated_at', lookup_expr='lte')
