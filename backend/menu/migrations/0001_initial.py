from django.db import migrations, models
import django.db.models.deletion


def catalog_entry_fields():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("name", models.CharField(max_length=200)),
        ("description", models.TextField(blank=True)),
        ("picture_url", models.CharField(blank=True, default="", max_length=500)),
        ("is_available", models.BooleanField(default=True, help_text="Whether the entry can currently be ordered.")),
        ("is_discountable", models.BooleanField(default=True)),
        ("is_deleted", models.BooleanField(default=False)),
        ("version", models.PositiveIntegerField(default=1)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ModifierSet",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(help_text="Customer-facing name, e.g., 'Choose your size'", max_length=100)),
            ],
        ),
        migrations.CreateModel(
            name="ModifierOption",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("price_delta", models.DecimalField(decimal_places=2, default=0, help_text="The amount to add or subtract from the base item price.", max_digits=10)),
                ("display_order", models.PositiveIntegerField(default=0)),
                ("modifier_set", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="options", to="menu.modifierset")),
            ],
            options={
                "ordering": ["display_order", "name"],
                "unique_together": {("modifier_set", "name")},
            },
        ),
        migrations.CreateModel(
            name="MenuItem",
            fields=catalog_entry_fields() + [
                ("sku", models.CharField(max_length=64, unique=True)),
                ("category", models.CharField(blank=True, default="", max_length=100)),
                ("group_name", models.CharField(blank=True, default="", max_length=100)),
                ("selling_price", models.DecimalField(decimal_places=2, help_text="The selling price of the item.", max_digits=10)),
                ("vendor_price", models.DecimalField(decimal_places=2, default=0, help_text="Unit cost paid to the vendor, used for profit.", max_digits=10)),
                ("modifier_sets", models.ManyToManyField(blank=True, related_name="menu_items", to="menu.modifierset")),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["category"], name="menuitem_category_idx"),
                    models.Index(fields=["is_deleted", "is_available"], name="menuitem_active_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Combo",
            fields=catalog_entry_fields() + [
                ("price", models.DecimalField(blank=True, decimal_places=2, help_text="Fixed combo price. Leave blank to charge the sum of the components.", max_digits=10, null=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="ComboItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("is_required", models.BooleanField(default=True)),
                ("combo", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="components", to="menu.combo")),
                ("menu_item", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="combo_memberships", to="menu.menuitem")),
            ],
            options={
                "ordering": ["id"],
                "unique_together": {("combo", "menu_item")},
            },
        ),
    ]
