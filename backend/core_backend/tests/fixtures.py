"""
Shared test fixtures for all backend tests.

This module provides reusable pytest fixtures for common test objects
like menu items, combos, billings and orders.
"""
import uuid
from decimal import Decimal

import pytest

from billing.services import BillingService
from menu.models import Combo, ComboItem, MenuItem, ModifierOption, ModifierSet
from orders.services import OrderLedgerService


# ============================================================================
# MENU FIXTURES
# ============================================================================

@pytest.fixture
def cheese_modifier(db):
    """Modifier set with a single 'Extra cheese' option (+1.50)."""
    modifier_set = ModifierSet.objects.create(name='Extras')
    option = ModifierOption.objects.create(
        modifier_set=modifier_set,
        name='Extra cheese',
        price_delta=Decimal('1.50'),
    )
    return option


@pytest.fixture
def burger(db, cheese_modifier):
    """Burger at 10.00 with an 'Extra cheese' modifier."""
    item = MenuItem.objects.create(
        name='Burger',
        sku='BRG-001',
        category='Mains',
        group_name='Grill',
        selling_price=Decimal('10.00'),
        vendor_price=Decimal('4.00'),
    )
    item.modifier_sets.add(cheese_modifier.modifier_set)
    return item


@pytest.fixture
def fries(db):
    """Fries at 5.00."""
    return MenuItem.objects.create(
        name='Fries',
        sku='FRY-001',
        category='Sides',
        selling_price=Decimal('5.00'),
        vendor_price=Decimal('1.00'),
    )


@pytest.fixture
def soda(db):
    """Inventory-tracked soda at 3.00."""
    return MenuItem.objects.create(
        name='Cola',
        sku='SODA-001',
        category='Soda',
        selling_price=Decimal('3.00'),
        vendor_price=Decimal('0.50'),
    )


@pytest.fixture
def lunch_combo(db, burger, fries, soda):
    """Combo priced at 15.00 whose components sum to 18.00."""
    combo = Combo.objects.create(name='Lunch Combo', price=Decimal('15.00'))
    ComboItem.objects.create(combo=combo, menu_item=burger, quantity=1)
    ComboItem.objects.create(combo=combo, menu_item=fries, quantity=1)
    ComboItem.objects.create(combo=combo, menu_item=soda, quantity=1)
    return combo


# ============================================================================
# BILLING & ORDER FIXTURES
# ============================================================================

@pytest.fixture
def session_id():
    return uuid.uuid4()


@pytest.fixture
def billing(db):
    return BillingService.create_billing(customer_name='Walk-in')


@pytest.fixture
def table_session(billing):
    """Active session for table T1 on the shared billing."""
    return BillingService.start_session(billing.billing_id, 'T1', server_id='srv-1', server_name='Alex')


@pytest.fixture
def order(db, session_id, burger, fries, cheese_modifier):
    """
    Open order: 1x Burger with extra cheese (11.50) and 2x Fries (10.00).
    Subtotal 21.50.
    """
    return OrderLedgerService.create_order(
        session_id=session_id,
        table_id='T1',
        server_id='srv-1',
        items=[
            {'menu_item_id': burger.id, 'quantity': 1, 'modifiers': [{'option_id': cheese_modifier.id}]},
            {'menu_item_id': fries.id, 'quantity': 2},
        ],
    )
