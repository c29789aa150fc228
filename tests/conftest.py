from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from authentication.models import CustomUser, Foodcourt
from inventory.models import MenuItem
from orders.models import Table
from orders.services import OrderLine, PlaceOrderCommand, get_order_assembler


@pytest.fixture(autouse=True)
def fresh_assembler():
    get_order_assembler.cache_clear()
    yield
    get_order_assembler.cache_clear()


@pytest.fixture
def api_client():
    return APIClient()


# ============================================================================
# Users
# ============================================================================

@pytest.fixture
def admin_user(db):
    return CustomUser.objects.create_user(
        email='admin@foodhall.test', password='Str0ng-pass!', name='Admin', role=CustomUser.ADMIN
    )


@pytest.fixture
def owner_a(db):
    return CustomUser.objects.create_user(
        email='alice@foodhall.test', password='Str0ng-pass!', name='Alice', role=CustomUser.OWNER
    )


@pytest.fixture
def owner_b(db):
    return CustomUser.objects.create_user(
        email='bob@foodhall.test', password='Str0ng-pass!', name='Bob', role=CustomUser.OWNER
    )


@pytest.fixture
def owner_c(db):
    return CustomUser.objects.create_user(
        email='carol@foodhall.test', password='Str0ng-pass!', name='Carol', role=CustomUser.OWNER
    )


@pytest.fixture
def customer(db):
    return CustomUser.objects.create_user(email='dave@foodhall.test', password='Str0ng-pass!', name='Dave')


# ============================================================================
# Stalls and menus
# ============================================================================

@pytest.fixture
def foodcourt_a(owner_a):
    return Foodcourt.objects.create(name='Burger Barn', owner=owner_a)


@pytest.fixture
def foodcourt_b(owner_b):
    return Foodcourt.objects.create(name='Noodle Nook', owner=owner_b)


@pytest.fixture
def burger(foodcourt_a):
    return MenuItem.objects.create(foodcourt=foodcourt_a, name='Burger', price=Decimal('9.50'))


@pytest.fixture
def fries(foodcourt_a):
    return MenuItem.objects.create(foodcourt=foodcourt_a, name='Fries', price=Decimal('3.25'))


@pytest.fixture
def noodles(foodcourt_b):
    return MenuItem.objects.create(foodcourt=foodcourt_b, name='Noodles', price=Decimal('12.00'))


@pytest.fixture
def table(db):
    return Table.objects.create(table_number=1)


# ============================================================================
# Orders
# ============================================================================

@pytest.fixture
def place_order(admin_user, table):
    """Place an order through the assembler; lines are (menu_item, quantity) pairs"""
    def _place(*lines, customer_name='', on_table=None):
        command = PlaceOrderCommand(
            table_id=(on_table or table).pk,
            customer_name=customer_name,
            lines=tuple(OrderLine(menu_item_id=item.pk, quantity=quantity) for item, quantity in lines),
        )
        return get_order_assembler().create_order(command)
    return _place


@pytest.fixture
def multi_stall_order(place_order, burger, fries, noodles):
    return place_order((burger, 2), (fries, 1), (noodles, 1))
