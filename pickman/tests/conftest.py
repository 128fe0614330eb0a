"""
Pytest fixtures for Pickman tests.
"""

import pytest
from django.contrib.auth import get_user_model

from pickman.adapters.orders import get_order_backend, reset_order_backend
from pickman.models import Product, Shelf, ShelfClass, Warehouse


User = get_user_model()


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username='picker',
        password='testpass123'
    )


@pytest.fixture(autouse=True)
def orders():
    """In-memory Order Service, fresh for every test."""
    reset_order_backend()
    backend = get_order_backend()
    backend.clear()
    yield backend
    backend.clear()
    reset_order_backend()


# ══════════════════════════════════════════════════════════════
# WAREHOUSE LAYOUT
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def warehouse(db):
    return Warehouse.objects.create(code='main', name='Main warehouse')


@pytest.fixture
def shelf_a(warehouse):
    """Sellable shelf, first in the walk."""
    return Shelf.objects.create(
        warehouse=warehouse,
        code='A-01-01',
        name='A1-1',
        location='A > 01 > 1',
        shelf_class=ShelfClass.SELLABLE,
        pick_sequence=10,
    )


@pytest.fixture
def shelf_b(warehouse):
    """Sellable shelf, second in the walk."""
    return Shelf.objects.create(
        warehouse=warehouse,
        code='B-02-01',
        name='B2-1',
        location='B > 02 > 1',
        shelf_class=ShelfClass.SELLABLE,
        pick_sequence=20,
    )


@pytest.fixture
def receiving(warehouse):
    return Shelf.objects.create(
        warehouse=warehouse,
        code='RCV-01',
        name='Receiving dock',
        shelf_class=ShelfClass.RECEIVING,
    )


@pytest.fixture
def return_shelf(warehouse):
    return Shelf.objects.create(
        warehouse=warehouse,
        code='RN-01',
        name='Returns',
        shelf_class=ShelfClass.RETURN_NORMAL,
    )


@pytest.fixture
def damaged_shelf(warehouse):
    return Shelf.objects.create(
        warehouse=warehouse,
        code='RD-01',
        name='Damaged returns',
        shelf_class=ShelfClass.RETURN_DAMAGED,
    )


# ══════════════════════════════════════════════════════════════
# PRODUCTS
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def soap(db):
    return Product.objects.create(sku='SOAP-001', barcode='8690000000001', name='Olive soap')


@pytest.fixture
def shampoo(db):
    return Product.objects.create(sku='SHMP-001', barcode='8690000000002', name='Herbal shampoo')


@pytest.fixture
def towel(db):
    return Product.objects.create(sku='TOWL-001', barcode='8690000000003', name='Bath towel')
