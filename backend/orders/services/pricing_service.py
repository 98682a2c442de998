"""
PricingEngine: line pricing for menu items and combos, combo price audits,
and aggregate order totals.

All arithmetic is Decimal. Rounding to the currency's minor unit happens
only on line amounts, never on per-unit intermediates.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional
import logging

from core_backend.config import ledger_settings
from core_backend.exceptions import ValidationError
from core_backend.utils.money import ZERO, quantize, to_decimal
from menu.services import CatalogSnapshotService
from menu.snapshots import ComboSnapshot, MenuItemSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockLine:
    """One inventory-backed sku consumed by an order line."""
    sku: str
    quantity: int
    unit_cost: Decimal


@dataclass
class PricedLine:
    """A fully priced order line, ready to be written as an OrderItem."""
    quantity: int
    base_price: Decimal
    vendor_price: Decimal
    price_delta: Decimal
    line_discount: Decimal
    gross_amount: Decimal
    line_total: Decimal
    profit: Decimal
    is_discountable: bool
    snapshot_name: str
    snapshot_sku: str
    snapshot_category: str
    snapshot_group: str
    snapshot_version: int
    snapshot_picture_url: str
    menu_item_id: Optional[int] = None
    combo_id: Optional[int] = None
    notes: str = ""
    selected_modifiers: List[dict] = field(default_factory=list)
    stock_lines: List[StockLine] = field(default_factory=list)


@dataclass
class LineAmounts:
    gross_amount: Decimal
    line_total: Decimal
    profit: Decimal


@dataclass
class ComboComponentLine:
    menu_item_id: int
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    is_available: bool


@dataclass
class ComboPriceBreakdown:
    """On-demand combo price audit used by management tooling."""
    combo_id: int
    name: str
    configured_price: Optional[Decimal]
    components_total: Decimal
    computed_price: Decimal
    savings: Decimal
    is_discountable: bool
    components: List[ComboComponentLine] = field(default_factory=list)


@dataclass
class OrderTotals:
    subtotal: Decimal
    discount_total: Decimal
    tax_total: Decimal
    total: Decimal
    profit_total: Decimal

    def as_dict(self):
        return {
            "subtotal": self.subtotal,
            "discount_total": self.discount_total,
            "tax_total": self.tax_total,
            "total": self.total,
            "profit_total": self.profit_total,
        }


class OrderPricingService:
    """Service for pricing order lines and computing order totals."""

    @staticmethod
    def validate_quantity(quantity) -> int:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f"Quantity must be a positive integer, got {quantity!r}", code="invalid_quantity")
        return quantity

    @staticmethod
    def _validate_discount(line_discount, gross_amount: Decimal, is_discountable: bool) -> Decimal:
        try:
            discount = to_decimal(line_discount or ZERO)
        except (InvalidOperation, TypeError):
            raise ValidationError(f"Invalid line discount {line_discount!r}", code="invalid_discount")
        if discount < ZERO:
            raise ValidationError("Line discount cannot be negative", code="invalid_discount")
        if discount > ZERO and not is_discountable:
            raise ValidationError("This line is not discountable", code="not_discountable")
        if discount > gross_amount:
            raise ValidationError("Line discount exceeds the line amount", code="invalid_discount")
        return quantize(ledger_settings.currency, discount)

    @staticmethod
    def price_amounts(
        quantity: int,
        base_price: Decimal,
        price_delta: Decimal,
        vendor_price: Decimal,
        line_discount: Decimal = ZERO,
    ) -> LineAmounts:
        """
        lineTotal = quantity * (basePrice + priceDelta) - lineDiscount
        profit    = quantity * (basePrice + priceDelta - vendorPrice) - lineDiscount
        """
        currency = ledger_settings.currency
        unit_price = base_price + price_delta
        gross = unit_price * quantity
        return LineAmounts(
            gross_amount=quantize(currency, gross),
            line_total=quantize(currency, gross - line_discount),
            profit=quantize(currency, (unit_price - vendor_price) * quantity - line_discount),
        )

    @staticmethod
    def resolve_modifiers(snapshot: MenuItemSnapshot, modifiers: Optional[Iterable]) -> tuple:
        """
        Look up each selected option in the snapshot's modifier table.

        Returns (price_delta, selected_modifiers) where selected_modifiers is the
        structured copy stored on the order item.
        """
        if modifiers is not None and not isinstance(modifiers, (list, tuple)):
            raise ValidationError("Modifiers must be a list of option selections", code="invalid_modifier")

        delta = ZERO
        selected = []
        for selection in modifiers or []:
            option_id = selection.get("option_id") if isinstance(selection, dict) else selection
            if not isinstance(option_id, int) or isinstance(option_id, bool):
                raise ValidationError(f"Invalid modifier selection {selection!r}", code="invalid_modifier")
            option = snapshot.modifier_options.get(option_id)
            if option is None:
                raise ValidationError(
                    f"Modifier option {option_id} is not offered for {snapshot.name}",
                    code="invalid_modifier",
                )
            delta += option.price_delta
            selected.append({
                "option_id": option.option_id,
                "modifier_set_id": option.modifier_set_id,
                "modifier_set_name": option.modifier_set_name,
                "option_name": option.name,
                "price_delta": option.price_delta,
            })
        return delta, selected

    @staticmethod
    def stock_lines_for_menu_item(snapshot: MenuItemSnapshot, quantity: int) -> List[StockLine]:
        if not ledger_settings.is_inventory_tracked(snapshot.category):
            return []
        return [StockLine(sku=snapshot.sku, quantity=quantity, unit_cost=snapshot.vendor_price)]

    @staticmethod
    def stock_lines_for_combo(snapshot: ComboSnapshot, quantity: int) -> List[StockLine]:
        return [
            StockLine(sku=c.sku, quantity=quantity * c.quantity, unit_cost=c.vendor_price)
            for c in snapshot.components
            if ledger_settings.is_inventory_tracked(c.category)
        ]

    @staticmethod
    def price_menu_item(
        snapshot: MenuItemSnapshot, quantity: int, modifiers=None, line_discount=ZERO, notes: str = ""
    ) -> PricedLine:
        quantity = OrderPricingService.validate_quantity(quantity)
        delta, selected = OrderPricingService.resolve_modifiers(snapshot, modifiers)

        gross = OrderPricingService.price_amounts(
            quantity, snapshot.selling_price, delta, snapshot.vendor_price
        ).gross_amount
        discount = OrderPricingService._validate_discount(line_discount, gross, snapshot.is_discountable)
        amounts = OrderPricingService.price_amounts(
            quantity, snapshot.selling_price, delta, snapshot.vendor_price, discount
        )

        return PricedLine(
            menu_item_id=snapshot.menu_item_id,
            quantity=quantity,
            base_price=snapshot.selling_price,
            vendor_price=snapshot.vendor_price,
            price_delta=delta,
            line_discount=discount,
            gross_amount=amounts.gross_amount,
            line_total=amounts.line_total,
            profit=amounts.profit,
            is_discountable=snapshot.is_discountable,
            snapshot_name=snapshot.name,
            snapshot_sku=snapshot.sku,
            snapshot_category=snapshot.category,
            snapshot_group=snapshot.group_name,
            snapshot_version=snapshot.version,
            snapshot_picture_url=snapshot.picture_url,
            notes=notes or "",
            selected_modifiers=selected,
            stock_lines=OrderPricingService.stock_lines_for_menu_item(snapshot, quantity),
        )

    @staticmethod
    def is_combo_discountable(snapshot: ComboSnapshot) -> bool:
        # A combo with any unavailable component still prices, but loses discount eligibility
        return snapshot.is_discountable and snapshot.all_components_available

    @staticmethod
    def price_combo(snapshot: ComboSnapshot, quantity: int, line_discount=ZERO, notes: str = "") -> PricedLine:
        quantity = OrderPricingService.validate_quantity(quantity)
        if not snapshot.components:
            raise ValidationError(f"Combo {snapshot.name} has no components", code="empty_combo")

        base_price = snapshot.effective_price
        vendor_price = snapshot.components_vendor_total
        is_discountable = OrderPricingService.is_combo_discountable(snapshot)

        gross = OrderPricingService.price_amounts(quantity, base_price, ZERO, vendor_price).gross_amount
        discount = OrderPricingService._validate_discount(line_discount, gross, is_discountable)
        amounts = OrderPricingService.price_amounts(quantity, base_price, ZERO, vendor_price, discount)

        return PricedLine(
            combo_id=snapshot.combo_id,
            quantity=quantity,
            base_price=base_price,
            vendor_price=vendor_price,
            price_delta=ZERO,
            line_discount=discount,
            gross_amount=amounts.gross_amount,
            line_total=amounts.line_total,
            profit=amounts.profit,
            is_discountable=is_discountable,
            snapshot_name=snapshot.name,
            snapshot_sku="",
            snapshot_category="Combo",
            snapshot_group="",
            snapshot_version=snapshot.version,
            snapshot_picture_url=snapshot.picture_url,
            notes=notes or "",
            stock_lines=OrderPricingService.stock_lines_for_combo(snapshot, quantity),
        )

    @staticmethod
    def compute_combo_price(combo_id: int) -> ComboPriceBreakdown:
        """
        Recompute a combo's price from the current catalog and return the
        per-component breakdown. Savings is what the guest saves versus
        buying the components separately.
        """
        currency = ledger_settings.currency
        snapshot = CatalogSnapshotService.get_combo_snapshot(combo_id)

        components = [
            ComboComponentLine(
                menu_item_id=c.menu_item_id,
                name=c.name,
                quantity=c.quantity,
                unit_price=c.unit_price,
                line_total=quantize(currency, c.line_total),
                is_available=c.is_available,
            )
            for c in snapshot.components
        ]
        components_total = quantize(currency, snapshot.components_total)
        computed_price = quantize(currency, snapshot.effective_price)

        return ComboPriceBreakdown(
            combo_id=snapshot.combo_id,
            name=snapshot.name,
            configured_price=snapshot.price,
            components_total=components_total,
            computed_price=computed_price,
            savings=components_total - computed_price,
            is_discountable=OrderPricingService.is_combo_discountable(snapshot),
            components=components,
        )

    @staticmethod
    def calculate_order_totals(items: Iterable) -> OrderTotals:
        """
        Aggregate totals from active items only. ``items`` may be OrderItem
        rows or PricedLine values; both expose the same amount attributes.
        """
        currency = ledger_settings.currency
        subtotal = ZERO
        discount_total = ZERO
        profit_total = ZERO
        for item in items:
            subtotal += quantize(currency, (item.base_price + item.price_delta) * item.quantity)
            discount_total += item.line_discount
            profit_total += item.profit

        tax_total = quantize(currency, (subtotal - discount_total) * ledger_settings.tax_rate)
        return OrderTotals(
            subtotal=quantize(currency, subtotal),
            discount_total=quantize(currency, discount_total),
            tax_total=tax_total,
            total=quantize(currency, subtotal - discount_total + tax_total),
            profit_total=quantize(currency, profit_total),
        )
