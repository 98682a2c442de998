from django.db import models
from django.utils.translation import gettext_lazy as _


class CatalogEntry(models.Model):
    """
    Fields shared by everything a guest can order. ``version`` is bumped on
    every save so order items can record which revision they were sold from.
    """

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    picture_url = models.CharField(max_length=500, blank=True, default="")
    is_available = models.BooleanField(
        default=True, help_text=_("Whether the entry can currently be ordered.")
    )
    is_discountable = models.BooleanField(default=True)
    is_deleted = models.BooleanField(default=False)
    version = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            self.version = (self.version or 0) + 1
            update_fields = kwargs.get("update_fields")
            if update_fields is not None:
                kwargs["update_fields"] = set(update_fields) | {"version"}
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class ModifierSet(models.Model):
    name = models.CharField(
        max_length=100, help_text=_("Customer-facing name, e.g., 'Choose your size'")
    )

    def __str__(self):
        return self.name


class ModifierOption(models.Model):
    modifier_set = models.ForeignKey(
        ModifierSet, on_delete=models.CASCADE, related_name="options"
    )
    name = models.CharField(max_length=100)
    price_delta = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        help_text=_("The amount to add or subtract from the base item price."),
    )
    display_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["display_order", "name"]
        unique_together = ("modifier_set", "name")

    def __str__(self):
        return f"{self.modifier_set.name} - {self.name}"


class MenuItem(CatalogEntry):
    sku = models.CharField(max_length=64, unique=True)
    category = models.CharField(max_length=100, blank=True, default="")
    group_name = models.CharField(max_length=100, blank=True, default="")
    selling_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("The selling price of the item."),
    )
    vendor_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        help_text=_("Unit cost paid to the vendor, used for profit."),
    )
    modifier_sets = models.ManyToManyField(
        ModifierSet, related_name="menu_items", blank=True
    )

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["category"], name="menuitem_category_idx"),
            models.Index(fields=["is_deleted", "is_available"], name="menuitem_active_idx"),
        ]


class Combo(CatalogEntry):
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Fixed combo price. Leave blank to charge the sum of the components."),
    )

    class Meta:
        ordering = ["name"]


class ComboItem(models.Model):
    combo = models.ForeignKey(Combo, on_delete=models.CASCADE, related_name="components")
    menu_item = models.ForeignKey(
        MenuItem, on_delete=models.PROTECT, related_name="combo_memberships"
    )
    quantity = models.PositiveIntegerField(default=1)
    is_required = models.BooleanField(default=True)

    class Meta:
        ordering = ["id"]
        unique_together = ("combo", "menu_item")

    def __str__(self):
        return f"{self.combo.name}: {self.quantity} x {self.menu_item.name}"
