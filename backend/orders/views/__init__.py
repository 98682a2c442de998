from .order_viewset import OrderViewSet
from .item_viewset import OrderItemViewSet

__all__ = ['OrderViewSet', 'OrderItemViewSet']
