from decimal import Decimal

import django.core.serializers.json
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("session_id", models.UUIDField(db_index=True)),
                ("billing_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("table_id", models.CharField(max_length=50)),
                ("server_id", models.CharField(blank=True, default="", max_length=100)),
                ("server_name", models.CharField(blank=True, default="", max_length=150)),
                ("status", models.CharField(choices=[("open", "Open"), ("closed", "Closed"), ("cancelled", "Cancelled")], default="open", max_length=20)),
                ("delivery_status", models.CharField(choices=[("waiting", "Waiting"), ("in_progress", "In Progress"), ("completed", "Completed")], default="waiting", max_length=20)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("discount_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("tax_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("profit_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, help_text="When every active item was delivered.", null=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["session_id", "status"], name="order_session_status_idx"),
                    models.Index(fields=["billing_id"], name="order_billing_idx"),
                    models.Index(fields=["status", "delivery_status"], name="order_status_delivery_idx"),
                    models.Index(fields=["created_at"], name="order_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("menu_item_id", models.BigIntegerField(blank=True, null=True)),
                ("combo_id", models.BigIntegerField(blank=True, null=True)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("delivered_quantity", models.PositiveIntegerField(default=0)),
                ("base_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("vendor_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("price_delta", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Sum of the selected modifier deltas, per unit.", max_digits=10)),
                ("line_discount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("line_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("profit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("state", models.CharField(choices=[("active", "Active"), ("deleted", "Deleted")], db_index=True, default="active", max_length=10)),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("snapshot_name", models.CharField(max_length=200)),
                ("snapshot_sku", models.CharField(blank=True, default="", max_length=64)),
                ("snapshot_category", models.CharField(blank=True, default="", max_length=100)),
                ("snapshot_group", models.CharField(blank=True, default="", max_length=100)),
                ("snapshot_version", models.PositiveIntegerField(default=1)),
                ("snapshot_picture_url", models.CharField(blank=True, default="", max_length=500)),
                ("selected_modifiers", models.JSONField(blank=True, default=list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ("is_discountable", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="orders.order")),
            ],
            options={
                "ordering": ["id"],
                "indexes": [
                    models.Index(fields=["order", "state"], name="orderitem_order_state_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(menu_item_id__isnull=False, combo_id__isnull=True)
                            | models.Q(menu_item_id__isnull=True, combo_id__isnull=False)
                        ),
                        name="orderitem_menu_item_xor_combo",
                    ),
                    models.CheckConstraint(condition=models.Q(quantity__gt=0), name="orderitem_quantity_positive"),
                    models.CheckConstraint(
                        condition=models.Q(delivered_quantity__lte=models.F("quantity")),
                        name="orderitem_delivered_within_quantity",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(choices=[("created", "Created"), ("add_items", "Items Added"), ("update_item", "Item Updated"), ("delete", "Item Deleted"), ("close", "Closed"), ("cancel", "Cancelled"), ("mark_delivered", "Marked Delivered"), ("mark_waiting", "Marked Waiting"), ("recalculate", "Totals Recalculated")], max_length=30)),
                ("old_value", models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True)),
                ("new_value", models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True)),
                ("server_id", models.CharField(blank=True, default="", max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="logs", to="orders.order")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["order", "-created_at"], name="orderlog_order_created_idx"),
                ],
            },
        ),
    ]
