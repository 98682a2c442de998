from rest_framework import serializers

from core_backend.base import BaseModelSerializer
from .models import Combo, MenuItem


class MenuItemSerializer(BaseModelSerializer):
    class Meta:
        model = MenuItem
        fields = [
            "id", "sku", "name", "category", "group_name", "selling_price",
            "picture_url", "is_available", "is_discountable", "version",
        ]
        read_only_fields = fields


class ComboSerializer(BaseModelSerializer):
    class Meta:
        model = Combo
        fields = ["id", "name", "price", "picture_url", "is_available", "is_discountable", "version"]
        read_only_fields = fields


class ComboComponentLineSerializer(serializers.Serializer):
    menu_item_id = serializers.IntegerField()
    name = serializers.CharField()
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2)
    is_available = serializers.BooleanField()


class ComboPriceBreakdownSerializer(serializers.Serializer):
    combo_id = serializers.IntegerField()
    name = serializers.CharField()
    configured_price = serializers.DecimalField(max_digits=10, decimal_places=2, allow_null=True)
    components_total = serializers.DecimalField(max_digits=12, decimal_places=2)
    computed_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    savings = serializers.DecimalField(max_digits=12, decimal_places=2)
    is_discountable = serializers.BooleanField()
    components = ComboComponentLineSerializer(many=True)
