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
def staff_user(db):
    return User.objects.create_user(
        email='staff@example.com',
        password='TestPass123!',
        first_name='Staff',
        is_staff=True,
    )


@pytest.fixture
def staff_client(api_client, staff_user):
    refresh = RefreshToken.for_user(staff_user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def plain_product(db):
    """Product without a bundle offer."""
    return Product.objects.create(
        name='Ibuprofen 400mg',
        manufacturer='Generic Pharma',
        price=Decimal('4.50'),
        stock_quantity=100,
    )


@pytest.fixture
def bundle_product(db):
    """Buy 10 get 2 free, 50.00 per bundle of 12, 10.00 per unit."""
    return Product.objects.create(
        name='Vitamin C 500mg',
        manufacturer='Vita Labs',
        price=Decimal('10.00'),
        stock_quantity=40,
        is_bundle_offer=True,
        bundle_buy_quantity=10,
        bundle_free_quantity=2,
        bundle_price=Decimal('50.00'),
    )


@pytest.fixture
def low_stock_product(db):
    return Product.objects.create(
        name='Zinc Lozenges',
        price=Decimal('6.00'),
        stock_quantity=3,
    )


@pytest.fixture
def inactive_product(db):
    return Product.objects.create(
        name='Discontinued Syrup',
        price=Decimal('8.00'),
        stock_quantity=0,
        is_active=False,
    )
