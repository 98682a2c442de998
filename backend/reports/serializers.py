from datetime import datetime

from rest_framework import serializers

from core_backend.base.filters import normalize_datetime_value


class AnalyticsParameterSerializer(serializers.Serializer):
    """
    Query parameters shared by the order analytics endpoints.

    Dates may be ``YYYY-MM-DD`` or full ISO datetimes. A date-only end bound
    covers the whole of that day.
    """

    start_date = serializers.CharField(required=False)
    end_date = serializers.CharField(required=False)
    bucket = serializers.ChoiceField(choices=["day", "hour"], required=False, default="day")
    limit = serializers.IntegerField(required=False, default=10, min_value=1, max_value=100)
    use_cache = serializers.BooleanField(required=False, default=True)

    def _to_datetime(self, value, *, is_end):
        normalized = normalize_datetime_value(value, is_end=is_end)
        if not isinstance(normalized, datetime):
            raise serializers.ValidationError("Use YYYY-MM-DD or an ISO 8601 datetime.")
        return normalized

    def validate_start_date(self, value):
        return self._to_datetime(value, is_end=False)

    def validate_end_date(self, value):
        return self._to_datetime(value, is_end=True)

    def validate(self, data):
        start, end = data.get("start_date"), data.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError("start_date must not be after end_date")
        return data


class OrderSummarySerializer(serializers.Serializer):
    total_orders = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    average_order_value = serializers.DecimalField(max_digits=14, decimal_places=2)
    completion_rate = serializers.FloatField()
    pending_orders = serializers.IntegerField()
    in_progress_orders = serializers.IntegerField()
    completed_orders = serializers.IntegerField()
    average_prep_time_minutes = serializers.FloatField()
    peak_hour = serializers.IntegerField(allow_null=True)
    alert_count = serializers.IntegerField()
    alert_message = serializers.CharField(allow_null=True)


class StatusSummarySerializer(serializers.Serializer):
    status = serializers.CharField()
    count = serializers.IntegerField()
    percentage = serializers.FloatField()


class TrendPointSerializer(serializers.Serializer):
    date = serializers.CharField()
    order_count = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    average_order_value = serializers.DecimalField(max_digits=14, decimal_places=2)


class RecentActivitySerializer(serializers.Serializer):
    title = serializers.CharField()
    description = serializers.CharField()
    timestamp = serializers.DateTimeField()
    type = serializers.CharField()
