from rest_framework import serializers

from core_backend.base import BaseModelSerializer
from core_backend.base.serializers import ServerContextMixin
from orders.models import Order, OrderLog
from .order_item_serializers import OrderItemSerializer, OrderLineInputSerializer


class OrderCreateSerializer(ServerContextMixin, serializers.Serializer):
    session_id = serializers.UUIDField()
    billing_id = serializers.UUIDField(required=False, allow_null=True)
    table_id = serializers.CharField(max_length=50)
    server_id = serializers.CharField(required=False, allow_blank=True)
    server_name = serializers.CharField(required=False, allow_blank=True, default="")
    items = OrderLineInputSerializer(many=True, required=False, default=list)


class OrderSerializer(BaseModelSerializer):
    """Order with its active items."""

    items = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "session_id",
            "billing_id",
            "table_id",
            "server_id",
            "server_name",
            "status",
            "delivery_status",
            "subtotal",
            "discount_total",
            "tax_total",
            "total",
            "profit_total",
            "created_at",
            "updated_at",
            "closed_at",
            "delivered_at",
            "items",
        ]
        read_only_fields = fields
        prefetch_related_fields = ["items"]

    def get_items(self, obj):
        # Filter in Python so the prefetched items are reused
        items = [item for item in obj.items.all() if not item.is_deleted]
        return OrderItemSerializer(items, many=True, context=self.context).data


class OrderListSerializer(BaseModelSerializer):
    class Meta:
        model = Order
        fields = [
            "id",
            "session_id",
            "billing_id",
            "table_id",
            "server_id",
            "status",
            "delivery_status",
            "total",
            "created_at",
            "closed_at",
        ]
        read_only_fields = fields


class OrderLogSerializer(BaseModelSerializer):
    class Meta:
        model = OrderLog
        fields = ["id", "order", "action", "old_value", "new_value", "server_id", "created_at"]
        read_only_fields = fields


class OrderActionSerializer(ServerContextMixin, serializers.Serializer):
    """Body for close/cancel/recalculate/mark-waiting; only the acting server."""

    server_id = serializers.CharField(required=False, allow_blank=True)


class DeliverySerializer(serializers.Serializer):
    order_item_id = serializers.IntegerField()
    delivered_quantity = serializers.IntegerField()


class MarkDeliveredSerializer(ServerContextMixin, serializers.Serializer):
    deliveries = DeliverySerializer(many=True, allow_empty=False)
    server_id = serializers.CharField(required=False, allow_blank=True)
