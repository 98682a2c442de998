from django.contrib import admin
from .models import Billing, TableSession


class TableSessionInline(admin.TabularInline):
    model = TableSession
    extra = 0
    readonly_fields = ("table_id", "server_id", "status", "start_time", "end_time", "destination_table_id", "moved_at")
    can_delete = False


@admin.register(Billing)
class BillingAdmin(admin.ModelAdmin):
    list_display = ("display_id", "customer_name", "status", "total_amount", "created_at")
    list_filter = ("status",)
    search_fields = ("customer_name", "billing_id")
    inlines = [TableSessionInline]
