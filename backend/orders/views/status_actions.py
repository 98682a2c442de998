from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from orders.serializers import OrderActionSerializer, OrderSerializer
from orders.services import OrderLedgerService


class StatusActionsMixin:
    """
    Order lifecycle actions for OrderViewSet.
    """

    def _run_status_action(self, request, operation, pk) -> Response:
        serializer = OrderActionSerializer(data=request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        order = operation(pk, server_id=serializer.get_server_id(serializer.validated_data))
        return Response(OrderSerializer(order, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["post"], url_path="close")
    def close(self, request: Request, pk=None) -> Response:
        return self._run_status_action(request, OrderLedgerService.close_order, pk)

    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request: Request, pk=None) -> Response:
        return self._run_status_action(request, OrderLedgerService.cancel_order, pk)

    @action(detail=True, methods=["post"], url_path="recalculate")
    def recalculate(self, request: Request, pk=None) -> Response:
        return self._run_status_action(request, OrderLedgerService.recalculate_totals, pk)
