from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from core_backend.base import ReadOnlyBaseViewSet
from orders.services import OrderPricingService
from .models import Combo, MenuItem
from .serializers import ComboPriceBreakdownSerializer, ComboSerializer, MenuItemSerializer


class MenuItemViewSet(ReadOnlyBaseViewSet):
    """Read-only catalog listing; catalog editing happens elsewhere."""

    queryset = MenuItem.objects.filter(is_deleted=False)
    serializer_class = MenuItemSerializer
    filterset_fields = ["category", "is_available"]
    ordering = ["name"]


class ComboViewSet(ReadOnlyBaseViewSet):
    queryset = Combo.objects.filter(is_deleted=False)
    serializer_class = ComboSerializer
    ordering = ["name"]

    @action(detail=True, methods=["get"], url_path="price")
    def price(self, request: Request, pk=None) -> Response:
        """Recompute the combo price from current catalog rates, with the component breakdown."""
        breakdown = OrderPricingService.compute_combo_price(pk)
        return Response(ComboPriceBreakdownSerializer(breakdown).data)
