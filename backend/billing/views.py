from rest_framework import mixins, status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from core_backend.base import BaseViewSet
from .models import Billing
from .serializers import (
    BillingSerializer,
    BillingSummarySerializer,
    MoveSessionSerializer,
    StartSessionSerializer,
    TableSessionSerializer,
)
from .services import BillingService


class BillingViewSet(mixins.CreateModelMixin, BaseViewSet):
    queryset = Billing.objects.all()
    serializer_class = BillingSerializer
    ordering = ["-created_at"]
    filterset_fields = ["status"]

    def perform_create(self, serializer):
        serializer.instance = BillingService.create_billing(
            customer_name=serializer.validated_data.get("customer_name", ""),
            customer_contact=serializer.validated_data.get("customer_contact", ""),
        )

    @action(detail=True, methods=["get"], url_path="summary")
    def summary(self, request: Request, pk=None) -> Response:
        return Response(BillingSummarySerializer(BillingService.summarize(pk)).data)

    @action(detail=True, methods=["post"], url_path="sessions")
    def start_session(self, request: Request, pk=None) -> Response:
        serializer = StartSessionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        session = BillingService.start_session(pk, **serializer.validated_data)
        return Response(TableSessionSerializer(session).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="close")
    def close(self, request: Request, pk=None) -> Response:
        billing = BillingService.close_billing(pk)
        return Response(BillingSerializer(billing).data)

    @action(detail=False, methods=["post"], url_path=r"sessions/(?P<session_id>[^/.]+)/move")
    def move_session(self, request: Request, session_id=None) -> Response:
        serializer = MoveSessionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        session = BillingService.move_session(
            session_id,
            data["from_table"],
            data["to_table"],
            server_id=data.get("server_id") or request.headers.get("X-Server-Id"),
        )
        return Response(TableSessionSerializer(session).data, status=status.HTTP_201_CREATED)
