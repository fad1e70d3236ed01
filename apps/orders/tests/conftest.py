import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.cart.models import Cart, CartItem
from apps.catalog.models import Product
from apps.orders.models import Order, OrderItem


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def customer(db):
    return User.objects.create_user(
        email='buyer@example.com',
        password='TestPass123!',
        first_name='Bea',
        last_name='Buyer',
    )


@pytest.fixture
def other_customer(db):
    return User.objects.create_user(
        email='someone@example.com',
        password='TestPass123!',
        first_name='Someone',
    )


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(
        email='pharmacist@example.com',
        password='TestPass123!',
        first_name='Pharmacist',
        is_staff=True,
    )


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def customer_client(customer):
    return _client_for(customer)


@pytest.fixture
def other_client(other_customer):
    return _client_for(other_customer)


@pytest.fixture
def staff_client(staff_user):
    return _client_for(staff_user)


@pytest.fixture
def plain_product(db):
    return Product.objects.create(
        name='Cough Syrup',
        price=Decimal('5.50'),
        stock_quantity=20,
    )


@pytest.fixture
def bundle_product(db):
    """Buy 10 get 2 free, 50.00 per bundle, 10.00 per unit."""
    return Product.objects.create(
        name='Multivitamin',
        price=Decimal('10.00'),
        stock_quantity=30,
        is_bundle_offer=True,
        bundle_buy_quantity=10,
        bundle_free_quantity=2,
        bundle_price=Decimal('50.00'),
    )


@pytest.fixture
def fill_cart():
    """Put (product, quantity) pairs into a user's cart, in order."""
    def _fill(user, *lines):
        cart, _ = Cart.objects.get_or_create(user=user)
        for product, quantity in lines:
            CartItem.objects.create(cart=cart, product=product, quantity=quantity)
        return cart
    return _fill


@pytest.fixture
def placed_order(customer, plain_product):
    """A PENDING order created directly, without checkout."""
    order = Order.objects.create(
        user=customer,
        shipping_address='1 Main Street, Springfield',
        payment_method='COD',
        total_amount=Decimal('11.00'),
    )
    OrderItem.objects.create(
        order=order,
        product=plain_product,
        quantity=2,
        price=plain_product.price,
        subtotal=Decimal('11.00'),
    )
    return order
