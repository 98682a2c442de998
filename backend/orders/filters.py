import django_filters
from core_backend.base.filters import BaseFilterSet
from .models import Order


class OrderFilter(BaseFilterSet):
    """
    Filter for listing orders by session, billing, table or status.

    A session lookup shows only open orders unless ``include_history=true``
    is passed.
    """

    session_id = django_filters.UUIDFilter(field_name="session_id")
    billing_id = django_filters.UUIDFilter(field_name="billing_id")
    table_id = django_filters.CharFilter(field_name="table_id")
    server_id = django_filters.CharFilter(field_name="server_id")
    status = django_filters.MultipleChoiceFilter(choices=Order.OrderStatus.choices)
    delivery_status = django_filters.MultipleChoiceFilter(choices=Order.DeliveryStatus.choices)
    include_history = django_filters.BooleanFilter(method="filter_include_history")

    class Meta:
        model = Order
        fields = ["session_id", "billing_id", "table_id", "server_id", "status", "delivery_status"]

    def filter_include_history(self, queryset, name, value):
        # Handled in filter_queryset so it can see the other parameters
        return queryset

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        data = self.form.cleaned_data
        if data.get("session_id") and not data.get("status") and not data.get("include_history"):
            queryset = queryset.filter(status=Order.OrderStatus.OPEN)
        return queryset
