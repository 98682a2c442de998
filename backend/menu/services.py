"""
SnapshotProvider: reads the catalog tables and returns immutable snapshots.

Catalog lookups are fail-closed: a missing entry raises NotFoundError and a
database failure raises TransientIntegrationError, because an order line
cannot be priced without its snapshot.
"""
import logging
from typing import List

from django.db import DatabaseError

from core_backend.exceptions import NotFoundError, TransientIntegrationError
from .models import Combo, ComboItem, MenuItem
from .snapshots import ComboComponent, ComboSnapshot, MenuItemSnapshot, ModifierOptionSnapshot

logger = logging.getLogger(__name__)


class CatalogSnapshotService:
    """
    Service for capturing catalog facts at the moment of sale.
    """

    @staticmethod
    def get_menu_item_snapshot(menu_item_id: int) -> MenuItemSnapshot:
        try:
            item = (
                MenuItem.objects.prefetch_related("modifier_sets__options")
                .get(pk=menu_item_id, is_deleted=False)
            )
        except (MenuItem.DoesNotExist, ValueError):
            raise NotFoundError(f"Menu item {menu_item_id} not found", code="menu_item_not_found")
        except DatabaseError as e:
            logger.error(f"Catalog lookup failed for menu item {menu_item_id}: {e}")
            raise TransientIntegrationError("Catalog is unavailable") from e

        options = {}
        for modifier_set in item.modifier_sets.all():
            for option in modifier_set.options.all():
                options[option.id] = ModifierOptionSnapshot(
                    option_id=option.id,
                    modifier_set_id=modifier_set.id,
                    modifier_set_name=modifier_set.name,
                    name=option.name,
                    price_delta=option.price_delta,
                )

        return MenuItemSnapshot(
            menu_item_id=item.id,
            name=item.name,
            sku=item.sku,
            category=item.category,
            group_name=item.group_name,
            version=item.version,
            picture_url=item.picture_url,
            selling_price=item.selling_price,
            vendor_price=item.vendor_price,
            is_available=item.is_available,
            is_discountable=item.is_discountable,
            modifier_options=options,
        )

    @staticmethod
    def get_combo_components(combo_id: int) -> List[ComboComponent]:
        try:
            links = list(
                ComboItem.objects.select_related("menu_item")
                .filter(combo_id=combo_id)
                .order_by("id")
            )
        except DatabaseError as e:
            logger.error(f"Catalog lookup failed for combo {combo_id} components: {e}")
            raise TransientIntegrationError("Catalog is unavailable") from e

        return [
            ComboComponent(
                menu_item_id=link.menu_item.id,
                name=link.menu_item.name,
                sku=link.menu_item.sku,
                category=link.menu_item.category,
                quantity=link.quantity,
                unit_price=link.menu_item.selling_price,
                vendor_price=link.menu_item.vendor_price,
                # A deleted component can no longer be served, so it counts as unavailable
                is_available=link.menu_item.is_available and not link.menu_item.is_deleted,
            )
            for link in links
        ]

    @staticmethod
    def get_combo_snapshot(combo_id: int) -> ComboSnapshot:
        try:
            combo = Combo.objects.get(pk=combo_id, is_deleted=False)
        except (Combo.DoesNotExist, ValueError):
            raise NotFoundError(f"Combo {combo_id} not found", code="combo_not_found")
        except DatabaseError as e:
            logger.error(f"Catalog lookup failed for combo {combo_id}: {e}")
            raise TransientIntegrationError("Catalog is unavailable") from e

        return ComboSnapshot(
            combo_id=combo.id,
            name=combo.name,
            version=combo.version,
            picture_url=combo.picture_url,
            price=combo.price,
            is_available=combo.is_available,
            is_discountable=combo.is_discountable,
            components=tuple(CatalogSnapshotService.get_combo_components(combo.id)),
        )
