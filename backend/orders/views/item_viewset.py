from rest_framework import mixins, status, viewsets
from rest_framework.request import Request
from rest_framework.response import Response

from orders.models import OrderItem
from orders.serializers import (
    AddItemsSerializer,
    OrderItemSerializer,
    OrderSerializer,
    UpdateOrderItemSerializer,
)
from orders.services import OrderLedgerService


class OrderItemViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Items within an order. Listing shows active items; pass
    ``?include_deleted=true`` to include soft-deleted rows.
    """

    serializer_class = OrderItemSerializer
    pagination_class = None
    http_method_names = ["get", "post", "put", "patch", "delete", "head", "options"]

    def get_serializer_class(self):
        if self.action == "create":
            return AddItemsSerializer
        if self.action in ("update", "partial_update"):
            return UpdateOrderItemSerializer
        return OrderItemSerializer

    def get_queryset(self):
        OrderLedgerService.get_order(self.kwargs["order_pk"])
        queryset = OrderItem.objects.filter(order_id=self.kwargs["order_pk"])
        if self.request.query_params.get("include_deleted", "").lower() != "true":
            queryset = queryset.active()
        return queryset

    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = OrderLedgerService.add_items(
            self.kwargs["order_pk"],
            serializer.validated_data["items"],
            server_id=serializer.get_server_id(serializer.validated_data),
        )
        return Response(OrderSerializer(order, context=self.get_serializer_context()).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, *args, **kwargs) -> Response:
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = OrderLedgerService.update_item(
            self.kwargs["order_pk"],
            self.kwargs["pk"],
            serializer.get_changes(),
            server_id=serializer.get_server_id(serializer.validated_data),
        )
        return Response(OrderItemSerializer(item, context=self.get_serializer_context()).data)

    def partial_update(self, request: Request, *args, **kwargs) -> Response:
        return self.update(request, *args, **kwargs)

    def destroy(self, request: Request, *args, **kwargs) -> Response:
        server_id = request.data.get("server_id") if hasattr(request.data, "get") else None
        order = OrderLedgerService.delete_item(
            self.kwargs["order_pk"],
            self.kwargs["pk"],
            server_id=server_id or request.headers.get("X-Server-Id"),
        )
        return Response(OrderSerializer(order, context=self.get_serializer_context()).data)
