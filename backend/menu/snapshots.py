"""
Point-in-time copies of catalog facts.

Order items copy these values at creation and never hold a live reference
to the catalog row they came from.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class ModifierOptionSnapshot:
    option_id: int
    modifier_set_id: int
    modifier_set_name: str
    name: str
    price_delta: Decimal


@dataclass(frozen=True)
class MenuItemSnapshot:
    menu_item_id: int
    name: str
    sku: str
    category: str
    group_name: str
    version: int
    picture_url: str
    selling_price: Decimal
    vendor_price: Decimal
    is_available: bool
    is_discountable: bool
    modifier_options: Dict[int, ModifierOptionSnapshot] = field(default_factory=dict)


@dataclass(frozen=True)
class ComboComponent:
    menu_item_id: int
    name: str
    sku: str
    category: str
    quantity: int
    unit_price: Decimal
    vendor_price: Decimal
    is_available: bool

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class ComboSnapshot:
    combo_id: int
    name: str
    version: int
    picture_url: str
    price: Optional[Decimal]  # None when the combo charges the sum of its components
    is_available: bool
    is_discountable: bool
    components: Tuple[ComboComponent, ...] = ()

    @property
    def components_total(self) -> Decimal:
        return sum((c.line_total for c in self.components), Decimal("0"))

    @property
    def components_vendor_total(self) -> Decimal:
        return sum((c.vendor_price * c.quantity for c in self.components), Decimal("0"))

    @property
    def all_components_available(self) -> bool:
        return all(c.is_available for c in self.components)

    @property
    def effective_price(self) -> Decimal:
        return self.price if self.price is not None else self.components_total
