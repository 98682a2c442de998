from django.contrib import admin
from .models import Order, OrderItem, OrderLog


class ReadOnlyInline(admin.TabularInline):
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


class OrderItemInline(ReadOnlyInline):
    model = OrderItem
    fields = ("snapshot_name", "quantity", "delivered_quantity", "base_price", "price_delta", "line_total", "state")
    readonly_fields = fields


class OrderLogInline(ReadOnlyInline):
    model = OrderLog
    fields = ("action", "server_id", "created_at", "old_value", "new_value")
    readonly_fields = fields


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Read-only view of the ledger. Orders change only through the ledger services.
    """

    list_display = ("id", "table_id", "status", "delivery_status", "total", "created_at")
    list_filter = ("status", "delivery_status")
    search_fields = ("id", "table_id", "server_id")
    readonly_fields = [f.name for f in Order._meta.fields]
    inlines = [OrderItemInline, OrderLogInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
