from .order_item_serializers import (
    ModifierSelectionSerializer,
    OrderLineInputSerializer,
    AddItemsSerializer,
    UpdateOrderItemSerializer,
    OrderItemSerializer,
)
from .order_serializers import (
    OrderCreateSerializer,
    OrderSerializer,
    OrderListSerializer,
    OrderLogSerializer,
    OrderActionSerializer,
    DeliverySerializer,
    MarkDeliveredSerializer,
)

__all__ = [
    'ModifierSelectionSerializer',
    'OrderLineInputSerializer',
    'AddItemsSerializer',
    'UpdateOrderItemSerializer',
    'OrderItemSerializer',
    'OrderCreateSerializer',
    'OrderSerializer',
    'OrderListSerializer',
    'OrderLogSerializer',
    'OrderActionSerializer',
    'DeliverySerializer',
    'MarkDeliveredSerializer',
]
