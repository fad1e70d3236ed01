import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.catalog.models import Product


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def customer(db):
    return User.objects.create_user(
        email='shopper@example.com',
        password='TestPass123!',
        first_name='Shopper',
    )


@pytest.fixture
def other_customer(db):
    return User.objects.create_user(
        email='other@example.com',
        password='TestPass123!',
        first_name='Other',
    )


@pytest.fixture
def customer_client(api_client, customer):
    """Return API client authenticated as customer."""
    refresh = RefreshToken.for_user(customer)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def plain_product(db):
    return Product.objects.create(
        name='Paracetamol 500mg',
        price=Decimal('3.20'),
        stock_quantity=50,
    )


@pytest.fixture
def bundle_product(db):
    """Buy 10 get 2 free, 50.00 per bundle, 10.00 per unit."""
    return Product.objects.create(
        name='Vitamin D3',
        price=Decimal('10.00'),
        stock_quantity=30,
        is_bundle_offer=True,
        bundle_buy_quantity=10,
        bundle_free_quantity=2,
        bundle_price=Decimal('50.00'),
    )


@pytest.fixture
def inactive_product(db):
    return Product.objects.create(
        name='Withdrawn Cream',
        price=Decimal('7.00'),
        stock_quantity=10,
        is_active=False,
    )
