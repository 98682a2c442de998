from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
import logging

from core_backend.base import BaseViewSet
from orders.filters import OrderFilter
from orders.models import Order
from orders.serializers import (
    OrderCreateSerializer,
    OrderListSerializer,
    OrderLogSerializer,
    OrderSerializer,
)
from orders.services import OrderAuditService, OrderLedgerService
from .delivery_actions import DeliveryActionsMixin
from .status_actions import StatusActionsMixin

logger = logging.getLogger(__name__)


class OrderViewSet(StatusActionsMixin, DeliveryActionsMixin, BaseViewSet):
    """
    Orders are created and mutated through the ledger services; this
    viewset exposes read access plus the ledger operations as actions.
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total", "id"]
    ordering = ["-created_at", "-id"]

    def get_serializer_class(self):
        if self.action == "list":
            return OrderListSerializer
        if self.action == "create":
            return OrderCreateSerializer
        return OrderSerializer

    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = OrderLedgerService.create_order(
            session_id=data["session_id"],
            table_id=data["table_id"],
            server_id=serializer.get_server_id(data),
            items=data.get("items", []),
            billing_id=data.get("billing_id"),
            server_name=data.get("server_name", ""),
        )
        return Response(OrderSerializer(order, context=self.get_serializer_context()).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"], url_path="logs")
    def logs(self, request: Request, pk=None) -> Response:
        """Newest-first audit entries: ?page=1&page_size=50."""
        page = OrderAuditService.list_logs(
            pk,
            page=request.query_params.get("page", 1),
            page_size=request.query_params.get("page_size", 50),
        )
        return Response({
            "count": page["total"],
            "page": page["page"],
            "page_size": page["page_size"],
            "results": OrderLogSerializer(page["results"], many=True).data,
        })
