from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from orders.serializers import MarkDeliveredSerializer, OrderActionSerializer, OrderSerializer
from orders.services import OrderDeliveryService


class DeliveryActionsMixin:
    """
    Delivery tracking actions for OrderViewSet.
    """

    @action(detail=True, methods=["post"], url_path="mark-delivered")
    def mark_delivered(self, request: Request, pk=None) -> Response:
        serializer = MarkDeliveredSerializer(data=request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        order = OrderDeliveryService.mark_delivered(
            pk,
            [dict(d) for d in serializer.validated_data["deliveries"]],
            server_id=serializer.get_server_id(serializer.validated_data),
        )
        return Response(OrderSerializer(order, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["post"], url_path="mark-waiting")
    def mark_waiting(self, request: Request, pk=None) -> Response:
        serializer = OrderActionSerializer(data=request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        order = OrderDeliveryService.mark_waiting(
            pk, server_id=serializer.get_server_id(serializer.validated_data)
        )
        return Response(OrderSerializer(order, context=self.get_serializer_context()).data)
