from django.contrib import admin

from .models import Combo, ComboItem, MenuItem, ModifierOption, ModifierSet


class ModifierOptionInline(admin.TabularInline):
    model = ModifierOption
    extra = 1


@admin.register(ModifierSet)
class ModifierSetAdmin(admin.ModelAdmin):
    list_display = ("name",)
    search_fields = ("name",)
    inlines = [ModifierOptionInline]


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("name", "sku", "category", "selling_price", "is_available", "is_deleted", "version")
    list_filter = ("category", "is_available", "is_deleted")
    search_fields = ("name", "sku")
    readonly_fields = ("version",)


class ComboItemInline(admin.TabularInline):
    model = ComboItem
    extra = 1
    autocomplete_fields = ["menu_item"]


@admin.register(Combo)
class ComboAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "is_available", "is_deleted", "version")
    search_fields = ("name",)
    readonly_fields = ("version",)
    inlines = [ComboItemInline]
