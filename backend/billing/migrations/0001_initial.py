import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Billing",
            fields=[
                ("billing_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("customer_name", models.CharField(blank=True, default="", max_length=150)),
                ("customer_contact", models.CharField(blank=True, default="", max_length=150)),
                ("status", models.CharField(choices=[("open", "Open"), ("closed", "Closed"), ("paid", "Paid"), ("cancelled", "Cancelled")], default="open", max_length=20)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="TableSession",
            fields=[
                ("session_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("table_id", models.CharField(max_length=50)),
                ("server_id", models.CharField(blank=True, default="", max_length=100)),
                ("server_name", models.CharField(blank=True, default="", max_length=150)),
                ("status", models.CharField(choices=[("active", "Active"), ("closed", "Closed"), ("moved", "Moved"), ("transferred", "Transferred")], default="active", max_length=20)),
                ("start_time", models.DateTimeField(auto_now_add=True)),
                ("end_time", models.DateTimeField(blank=True, null=True)),
                ("original_table_id", models.CharField(blank=True, default="", max_length=50)),
                ("destination_table_id", models.CharField(blank=True, default="", max_length=50)),
                ("moved_at", models.DateTimeField(blank=True, null=True)),
                ("billing", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="sessions", to="billing.billing")),
            ],
            options={
                "ordering": ["start_time"],
                "indexes": [
                    models.Index(fields=["billing", "status"], name="session_billing_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(status="active"), fields=("table_id",), name="one_active_session_per_table"),
                ],
            },
        ),
    ]
