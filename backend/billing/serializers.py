from rest_framework import serializers

from core_backend.base import BaseModelSerializer
from .models import Billing, TableSession


class TableSessionSerializer(BaseModelSerializer):
    movement_label = serializers.CharField(read_only=True)

    class Meta:
        model = TableSession
        fields = [
            "session_id",
            "billing",
            "table_id",
            "server_id",
            "server_name",
            "status",
            "start_time",
            "end_time",
            "original_table_id",
            "destination_table_id",
            "moved_at",
            "movement_label",
        ]
        read_only_fields = fields


class BillingSerializer(BaseModelSerializer):
    display_id = serializers.CharField(read_only=True)
    sessions = TableSessionSerializer(many=True, read_only=True)

    class Meta:
        model = Billing
        fields = [
            "billing_id",
            "display_id",
            "customer_name",
            "customer_contact",
            "status",
            "subtotal",
            "tax_amount",
            "discount_amount",
            "total_amount",
            "created_at",
            "updated_at",
            "closed_at",
            "sessions",
        ]
        read_only_fields = [
            "billing_id",
            "status",
            "subtotal",
            "tax_amount",
            "discount_amount",
            "total_amount",
            "created_at",
            "updated_at",
            "closed_at",
        ]
        prefetch_related_fields = ["sessions"]


class BillingSummarySerializer(serializers.Serializer):
    billing_id = serializers.CharField()
    display_id = serializers.CharField()
    customer_name = serializers.CharField()
    status = serializers.CharField()
    total_sessions = serializers.IntegerField()
    active_sessions = serializers.IntegerField()
    moved_sessions = serializers.IntegerField()
    total_orders = serializers.IntegerField()
    total_items = serializers.IntegerField()
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    profit_total = serializers.DecimalField(max_digits=12, decimal_places=2)
    created_at = serializers.DateTimeField()
    last_activity = serializers.DateTimeField()
    total_duration_minutes = serializers.IntegerField()
    current_tables = serializers.ListField(child=serializers.CharField())
    movement_history = serializers.ListField(child=serializers.CharField())
    primary_server = serializers.CharField(allow_null=True)


class StartSessionSerializer(serializers.Serializer):
    table_id = serializers.CharField(max_length=50)
    server_id = serializers.CharField(required=False, allow_blank=True, default="")
    server_name = serializers.CharField(required=False, allow_blank=True, default="")


class MoveSessionSerializer(serializers.Serializer):
    from_table = serializers.CharField(max_length=50)
    to_table = serializers.CharField(max_length=50)
    server_id = serializers.CharField(required=False, allow_blank=True)
