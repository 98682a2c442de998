import logging

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .serializers import (
    AnalyticsParameterSerializer,
    OrderSummarySerializer,
    RecentActivitySerializer,
    StatusSummarySerializer,
    TrendPointSerializer,
)
from .services import OrderAnalyticsService

logger = logging.getLogger(__name__)


class OrderAnalyticsViewSet(viewsets.ViewSet):
    """
    Dashboard analytics over committed orders. Figures may be up to the
    configured cache window stale; pass ?use_cache=false for live numbers.
    """

    def _params(self, request):
        serializer = AnalyticsParameterSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request):
        params = self._params(request)
        data = OrderAnalyticsService.get_summary(
            params.get("start_date"), params.get("end_date"), use_cache=params["use_cache"]
        )
        return Response(OrderSummarySerializer(data).data)

    @action(detail=False, methods=["get"], url_path="status-summary")
    def status_summary(self, request):
        params = self._params(request)
        data = OrderAnalyticsService.get_status_summary(
            params.get("start_date"), params.get("end_date"), use_cache=params["use_cache"]
        )
        return Response(StatusSummarySerializer(data, many=True).data)

    @action(detail=False, methods=["get"], url_path="trends")
    def trends(self, request):
        params = self._params(request)
        data = OrderAnalyticsService.get_trends(
            params.get("start_date"), params.get("end_date"), bucket=params["bucket"], use_cache=params["use_cache"]
        )
        return Response(TrendPointSerializer(data, many=True).data)

    @action(detail=False, methods=["get"], url_path="recent-activity")
    def recent_activity(self, request):
        params = self._params(request)
        data = OrderAnalyticsService.get_recent_activity(limit=params["limit"])
        return Response(RecentActivitySerializer(data, many=True).data)
