from decimal import Decimal

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _


class Order(models.Model):
    class OrderStatus(models.TextChoices):
        OPEN = "open", _("Open")
        CLOSED = "closed", _("Closed")
        CANCELLED = "cancelled", _("Cancelled")

    class DeliveryStatus(models.TextChoices):
        WAITING = "waiting", _("Waiting")
        IN_PROGRESS = "in_progress", _("In Progress")
        COMPLETED = "completed", _("Completed")

    # Numeric, store-assigned, monotonic
    id = models.BigAutoField(primary_key=True)
    session_id = models.UUIDField(db_index=True)
    billing_id = models.UUIDField(null=True, blank=True, db_index=True)
    table_id = models.CharField(max_length=50)
    server_id = models.CharField(max_length=100, blank=True, default="")
    server_name = models.CharField(max_length=150, blank=True, default="")

    status = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.OPEN
    )
    delivery_status = models.CharField(
        max_length=20, choices=DeliveryStatus.choices, default=DeliveryStatus.WAITING
    )

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    profit_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    closed_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(
        null=True, blank=True, help_text=_("When every active item was delivered.")
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["session_id", "status"], name="order_session_status_idx"),
            models.Index(fields=["billing_id"], name="order_billing_idx"),
            models.Index(fields=["status", "delivery_status"], name="order_status_delivery_idx"),
            models.Index(fields=["created_at"], name="order_created_idx"),
        ]

    def __str__(self):
        return f"Order {self.id} ({self.get_status_display()})"

    @property
    def is_mutable(self):
        return self.status == self.OrderStatus.OPEN


class OrderItemQuerySet(models.QuerySet):
    def active(self):
        return self.filter(state=OrderItem.ItemState.ACTIVE)

    def deleted(self):
        return self.filter(state=OrderItem.ItemState.DELETED)


class OrderItem(models.Model):
    class ItemState(models.TextChoices):
        ACTIVE = "active", _("Active")
        DELETED = "deleted", _("Deleted")

    # Captured once at creation, never re-read from the live catalog
    SNAPSHOT_FIELDS = frozenset({
        "menu_item_id",
        "combo_id",
        "base_price",
        "vendor_price",
        "snapshot_name",
        "snapshot_sku",
        "snapshot_category",
        "snapshot_group",
        "snapshot_version",
        "snapshot_picture_url",
    })

    order = models.ForeignKey(Order, related_name="items", on_delete=models.CASCADE)

    # Plain catalog ids, not foreign keys: the catalog row may change or vanish
    menu_item_id = models.BigIntegerField(null=True, blank=True)
    combo_id = models.BigIntegerField(null=True, blank=True)

    quantity = models.PositiveIntegerField(default=1)
    delivered_quantity = models.PositiveIntegerField(default=0)

    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    vendor_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    price_delta = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00"),
        help_text=_("Sum of the selected modifier deltas, per unit."),
    )
    line_discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    line_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    profit = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    state = models.CharField(
        max_length=10, choices=ItemState.choices, default=ItemState.ACTIVE, db_index=True
    )
    deleted_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True, default="")

    snapshot_name = models.CharField(max_length=200)
    snapshot_sku = models.CharField(max_length=64, blank=True, default="")
    snapshot_category = models.CharField(max_length=100, blank=True, default="")
    snapshot_group = models.CharField(max_length=100, blank=True, default="")
    snapshot_version = models.PositiveIntegerField(default=1)
    snapshot_picture_url = models.CharField(max_length=500, blank=True, default="")
    selected_modifiers = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    is_discountable = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = OrderItemQuerySet.as_manager()

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(menu_item_id__isnull=False, combo_id__isnull=True)
                    | Q(menu_item_id__isnull=True, combo_id__isnull=False)
                ),
                name="orderitem_menu_item_xor_combo",
            ),
            models.CheckConstraint(condition=Q(quantity__gt=0), name="orderitem_quantity_positive"),
            models.CheckConstraint(
                condition=Q(delivered_quantity__lte=F("quantity")),
                name="orderitem_delivered_within_quantity",
            ),
        ]
        indexes = [
            models.Index(fields=["order", "state"], name="orderitem_order_state_idx"),
        ]

    def __str__(self):
        return f"{self.quantity} of {self.snapshot_name}"

    def save(self, *args, **kwargs):
        update_fields = kwargs.get("update_fields")
        if not self._state.adding:
            if update_fields is None:
                raise ValueError("OrderItem updates must name their update_fields")
            frozen = self.SNAPSHOT_FIELDS.intersection(update_fields)
            if frozen:
                raise ValueError(f"Snapshot fields are immutable: {sorted(frozen)}")
        super().save(*args, **kwargs)

    @property
    def is_deleted(self):
        return self.state == self.ItemState.DELETED

    @property
    def is_combo(self):
        return self.combo_id is not None

    @property
    def delivery_state(self):
        if self.delivered_quantity <= 0:
            return "pending"
        if self.delivered_quantity < self.quantity:
            return "partially_delivered"
        return "delivered"

    @property
    def pending_quantity(self):
        return self.quantity - self.delivered_quantity


class OrderLogQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise TypeError("Order logs are append-only")

    def delete(self):
        raise TypeError("Order logs are append-only")


class OrderLog(models.Model):
    class Action(models.TextChoices):
        CREATED = "created", _("Created")
        ADD_ITEMS = "add_items", _("Items Added")
        UPDATE_ITEM = "update_item", _("Item Updated")
        DELETE = "delete", _("Item Deleted")
        CLOSE = "close", _("Closed")
        CANCEL = "cancel", _("Cancelled")
        MARK_DELIVERED = "mark_delivered", _("Marked Delivered")
        MARK_WAITING = "mark_waiting", _("Marked Waiting")
        RECALCULATE = "recalculate", _("Totals Recalculated")

    order = models.ForeignKey(Order, related_name="logs", on_delete=models.CASCADE)
    action = models.CharField(max_length=30, choices=Action.choices)
    old_value = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    new_value = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    server_id = models.CharField(max_length=100, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = OrderLogQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["order", "-created_at"], name="orderlog_order_created_idx"),
        ]

    def __str__(self):
        return f"{self.action} on order {self.order_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise TypeError("Order logs are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise TypeError("Order logs are append-only")
