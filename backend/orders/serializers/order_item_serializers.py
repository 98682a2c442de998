from rest_framework import serializers

from core_backend.base import BaseModelSerializer
from core_backend.base.serializers import ServerContextMixin
from orders.models import OrderItem


class ModifierSelectionSerializer(serializers.Serializer):
    option_id = serializers.IntegerField()


class OrderLineInputSerializer(serializers.Serializer):
    """One requested line. Exactly one of menu_item_id / combo_id is checked by the ledger."""

    menu_item_id = serializers.IntegerField(required=False, allow_null=True)
    combo_id = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.IntegerField(required=False, default=1)
    modifiers = ModifierSelectionSerializer(many=True, required=False, default=list)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    line_discount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, default="0.00")

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        value["modifiers"] = [dict(m) for m in value.get("modifiers", [])]
        return dict(value)


class AddItemsSerializer(ServerContextMixin, serializers.Serializer):
    items = OrderLineInputSerializer(many=True, allow_empty=False)
    server_id = serializers.CharField(required=False, allow_blank=True)


class UpdateOrderItemSerializer(ServerContextMixin, serializers.Serializer):
    quantity = serializers.IntegerField(required=False)
    modifiers = ModifierSelectionSerializer(many=True, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    server_id = serializers.CharField(required=False, allow_blank=True)

    def get_changes(self):
        changes = {k: v for k, v in self.validated_data.items() if k != "server_id"}
        if "modifiers" in changes:
            changes["modifiers"] = [dict(m) for m in changes["modifiers"]]
        return changes


class OrderItemSerializer(BaseModelSerializer):
    delivery_state = serializers.CharField(read_only=True)
    pending_quantity = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "order",
            "menu_item_id",
            "combo_id",
            "quantity",
            "delivered_quantity",
            "pending_quantity",
            "delivery_state",
            "base_price",
            "vendor_price",
            "price_delta",
            "line_discount",
            "line_total",
            "profit",
            "is_discountable",
            "state",
            "deleted_at",
            "notes",
            "snapshot_name",
            "snapshot_sku",
            "snapshot_category",
            "snapshot_group",
            "snapshot_version",
            "snapshot_picture_url",
            "selected_modifiers",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
