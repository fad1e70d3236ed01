import pytest
from decimal import Decimal
from apps.accounts.models import User
from apps.catalog.models import Product
from apps.orders.models import Order, OrderItem


@pytest.fixture
def enable_notifications(settings):
    """Switch the named NOTIFICATIONS toggles on (or off with value=False)."""
    def _enable(*flags, value=True):
        settings.NOTIFICATIONS = {**settings.NOTIFICATIONS, **{flag: value for flag in flags}}
    return _enable


@pytest.fixture
def customer(db):
    return User.objects.create_user(
        email='patient@example.com',
        password='TestPass123!',
        first_name='Pat',
    )


@pytest.fixture
def products(db):
    return [
        Product.objects.create(name='Aspirin', price=Decimal('2.00'), stock_quantity=2),
        Product.objects.create(name='Bandages', price=Decimal('3.00'), stock_quantity=10),
        Product.objects.create(name='Cold Spray', price=Decimal('9.00'), stock_quantity=11),
        Product.objects.create(name='Old Tonic', price=Decimal('1.00'), stock_quantity=0, is_active=False),
    ]


@pytest.fixture
def order(customer, products):
    order = Order.objects.create(
        user=customer,
        shipping_address='5 Elm Street',
        payment_method='COD',
        total_amount=Decimal('4.00'),
    )
    OrderItem.objects.create(
        order=order,
        product=products[0],
        quantity=2,
        price=Decimal('2.00'),
        subtotal=Decimal('4.00'),
    )
    return order
