from rest_framework import filters, mixins, viewsets
from django_filters.rest_framework import DjangoFilterBackend
from .mixins import OptimizedQuerysetMixin
from ..pagination import StandardPagination


class BaseViewSet(OptimizedQuerysetMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Base ViewSet with the standard project configuration.

    Ledger resources are mutated only through service calls, so writes are
    exposed as explicit actions on the subclasses rather than generic
    create/update/destroy handlers.

    Usage:
        class OrderViewSet(BaseViewSet):
            queryset = Order.objects.all()
            serializer_class = OrderSerializer
    """

    pagination_class = StandardPagination

    filter_backends = [
        DjangoFilterBackend,
        filters.OrderingFilter,
    ]

    ordering = ['-id']


class ReadOnlyBaseViewSet(OptimizedQuerysetMixin, viewsets.ReadOnlyModelViewSet):
    """Base ViewSet for read-only endpoints."""

    pagination_class = StandardPagination
    filter_backends = [
        DjangoFilterBackend,
        filters.OrderingFilter,
    ]
    ordering = ['-id']
