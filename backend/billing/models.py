import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


class Billing(models.Model):
    """
    The payable entity for a guest's visit. Aggregates one or more table
    sessions; orders reach a billing through their session id.
    """

    class BillingStatus(models.TextChoices):
        OPEN = "open", _("Open")
        CLOSED = "closed", _("Closed")
        PAID = "paid", _("Paid")
        CANCELLED = "cancelled", _("Cancelled")

    billing_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer_name = models.CharField(max_length=150, blank=True, default="")
    customer_contact = models.CharField(max_length=150, blank=True, default="")
    status = models.CharField(
        max_length=20, choices=BillingStatus.choices, default=BillingStatus.OPEN
    )

    # Persisted when the billing is closed; live figures come from BillingService.summarize
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Billing {self.display_id}"

    @property
    def display_id(self):
        return str(self.billing_id)[:8].upper()


class TableSession(models.Model):
    """One continuous occupation of a table under a billing."""

    class SessionStatus(models.TextChoices):
        ACTIVE = "active", _("Active")
        CLOSED = "closed", _("Closed")
        MOVED = "moved", _("Moved")
        TRANSFERRED = "transferred", _("Transferred")

    session_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    billing = models.ForeignKey(Billing, related_name="sessions", on_delete=models.PROTECT)
    table_id = models.CharField(max_length=50)
    server_id = models.CharField(max_length=100, blank=True, default="")
    server_name = models.CharField(max_length=150, blank=True, default="")
    status = models.CharField(
        max_length=20, choices=SessionStatus.choices, default=SessionStatus.ACTIVE
    )
    start_time = models.DateTimeField(auto_now_add=True)
    end_time = models.DateTimeField(null=True, blank=True)

    original_table_id = models.CharField(max_length=50, blank=True, default="")
    destination_table_id = models.CharField(max_length=50, blank=True, default="")
    moved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["start_time"]
        constraints = [
            models.UniqueConstraint(
                fields=["table_id"],
                condition=Q(status="active"),
                name="one_active_session_per_table",
            ),
        ]
        indexes = [
            models.Index(fields=["billing", "status"], name="session_billing_status_idx"),
        ]

    def __str__(self):
        return f"Session {self.session_id} at table {self.table_id} ({self.status})"

    @property
    def movement_label(self):
        if not self.destination_table_id:
            return None
        return f"{self.table_id} → {self.destination_table_id}"
