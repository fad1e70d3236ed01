from decimal import Decimal
from unittest.mock import patch

import pytest
from django.core import mail

from apps.cart.models import CartItem
from apps.catalog.models import Product
from apps.orders.models import Order, OrderStatus, PaymentStatus
from apps.orders.services import EmptyCartError, InsufficientStockError, create_order
from apps.orders.services import checkout


ADDRESS = '221B Baker Street, London'


@pytest.mark.django_db
class TestCreateOrder:

    def test_bundle_line_priced_with_free_units(self, customer, bundle_product, fill_cart):
        fill_cart(customer, (bundle_product, 12))

        order = create_order(user=customer, shipping_address=ADDRESS, payment_method='COD')

        assert order.total_amount == Decimal('50.00')
        item = order.items.get()
        assert item.quantity == 12
        assert item.free_quantity == 2
        assert item.price == Decimal('10.00')
        assert item.subtotal == Decimal('50.00')

    def test_total_is_sum_of_line_subtotals(self, customer, bundle_product, plain_product, fill_cart):
        fill_cart(customer, (bundle_product, 13), (plain_product, 3))

        order = create_order(user=customer, shipping_address=ADDRESS, payment_method='CARD')

        subtotals = [item.subtotal for item in order.items.all()]
        assert subtotals == [Decimal('60.00'), Decimal('16.50')]
        assert order.total_amount == Decimal('76.50')

    def test_order_starts_pending(self, customer, plain_product, fill_cart):
        fill_cart(customer, (plain_product, 1))

        order = create_order(user=customer, shipping_address=ADDRESS, payment_method='COD')

        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.shipping_address == ADDRESS
        assert order.payment_method == 'COD'

    def test_stock_decremented_including_free_units(self, customer, bundle_product, plain_product, fill_cart):
        fill_cart(customer, (bundle_product, 12), (plain_product, 4))

        create_order(user=customer, shipping_address=ADDRESS, payment_method='COD')

        bundle_product.refresh_from_db()
        plain_product.refresh_from_db()
        assert bundle_product.stock_quantity == 18
        assert plain_product.stock_quantity == 16

    def test_exact_stock_can_be_bought(self, customer, plain_product, fill_cart):
        fill_cart(customer, (plain_product, 20))

        create_order(user=customer, shipping_address=ADDRESS, payment_method='COD')

        plain_product.refresh_from_db()
        assert plain_product.stock_quantity == 0

    def test_cart_emptied(self, customer, plain_product, fill_cart):
        fill_cart(customer, (plain_product, 1))

        create_order(user=customer, shipping_address=ADDRESS, payment_method='COD')

        assert not CartItem.objects.filter(cart__user=customer).exists()

    def test_other_carts_untouched(self, customer, other_customer, plain_product, fill_cart):
        fill_cart(customer, (plain_product, 1))
        fill_cart(other_customer, (plain_product, 2))

        create_order(user=customer, shipping_address=ADDRESS, payment_method='COD')

        assert CartItem.objects.filter(cart__user=other_customer).count() == 1

    def test_price_snapshot_survives_price_change(self, customer, plain_product, fill_cart):
        fill_cart(customer, (plain_product, 2))
        order = create_order(user=customer, shipping_address=ADDRESS, payment_method='COD')

        Product.objects.filter(pk=plain_product.pk).update(price=Decimal('99.00'))

        item = order.items.get()
        assert item.price == Decimal('5.50')
        assert item.subtotal == Decimal('11.00')

    def test_empty_cart(self, customer):
        with pytest.raises(EmptyCartError):
            create_order(user=customer, shipping_address=ADDRESS, payment_method='COD')

        assert Order.objects.count() == 0


@pytest.mark.django_db
class TestInsufficientStock:

    def test_nothing_changes(self, customer, plain_product, bundle_product, fill_cart,
                             django_capture_on_commit_callbacks):
        fill_cart(customer, (bundle_product, 12), (plain_product, 21))

        with django_capture_on_commit_callbacks() as callbacks:
            with pytest.raises(InsufficientStockError) as exc:
                create_order(user=customer, shipping_address=ADDRESS, payment_method='COD')

        assert exc.value.product == plain_product
        assert plain_product.name in str(exc.value)
        assert Order.objects.count() == 0
        bundle_product.refresh_from_db()
        plain_product.refresh_from_db()
        assert bundle_product.stock_quantity == 30
        assert plain_product.stock_quantity == 20
        assert CartItem.objects.filter(cart__user=customer).count() == 2
        assert callbacks == []

    def test_conditional_decrement_rolls_back_earlier_lines(self, customer, plain_product,
                                                            bundle_product, fill_cart,
                                                            django_capture_on_commit_callbacks):
        """Stock taken between validation and decrement undoes the whole order."""
        fill_cart(customer, (bundle_product, 12), (plain_product, 5))
        real_decrement = checkout._decrement_stock

        def racing_decrement(product, quantity):
            if product.pk == plain_product.pk:
                Product.objects.filter(pk=product.pk).update(stock_quantity=1)
            return real_decrement(product, quantity)

        with django_capture_on_commit_callbacks() as callbacks:
            with patch.object(checkout, '_decrement_stock', side_effect=racing_decrement):
                with pytest.raises(InsufficientStockError):
                    create_order(user=customer, shipping_address=ADDRESS, payment_method='COD')

        assert Order.objects.count() == 0
        bundle_product.refresh_from_db()
        assert bundle_product.stock_quantity == 30
        assert CartItem.objects.filter(cart__user=customer).count() == 2
        assert callbacks == []


@pytest.mark.django_db
class TestOrderPlacedNotification:

    def test_dispatched_on_commit_only(self, customer, plain_product, fill_cart,
                                       django_capture_on_commit_callbacks):
        fill_cart(customer, (plain_product, 1))

        with patch('apps.orders.services.checkout.notify_order_placed') as notify:
            with django_capture_on_commit_callbacks() as callbacks:
                order = create_order(user=customer, shipping_address=ADDRESS, payment_method='COD')
            notify.assert_not_called()

            for callback in callbacks:
                callback()

        notify.assert_called_once_with(order)

    def test_emails_sent_when_enabled(self, customer, bundle_product, fill_cart, settings,
                                      django_capture_on_commit_callbacks):
        settings.NOTIFICATIONS = {
            **settings.NOTIFICATIONS,
            'CUSTOMER_ORDER_CONFIRMATION_ENABLED': True,
            'ADMIN_ORDER_PLACED_ENABLED': True,
        }
        fill_cart(customer, (bundle_product, 12))

        with django_capture_on_commit_callbacks(execute=True):
            order = create_order(user=customer, shipping_address=ADDRESS, payment_method='COD')

        recipients = sorted(m.to[0] for m in mail.outbox)
        assert recipients == sorted([customer.email, settings.ADMIN_EMAIL])
        confirmation = next(m for m in mail.outbox if m.to == [customer.email])
        assert f'#{order.pk}' in confirmation.subject
        assert '50.00' in confirmation.body

    def test_enqueue_failure_does_not_fail_checkout(self, customer, plain_product, fill_cart,
                                                    django_capture_on_commit_callbacks):
        fill_cart(customer, (plain_product, 1))

        with patch(
            'apps.notifications.tasks.send_order_placed_emails.delay',
            side_effect=ConnectionError('broker down'),
        ):
            with django_capture_on_commit_callbacks(execute=True):
                order = create_order(user=customer, shipping_address=ADDRESS, payment_method='COD')

        assert Order.objects.filter(pk=order.pk).exists()
