"""
Management command to create sample data for trying out the API.

Usage:
    python manage.py create_sample_data [--clear]

This creates:
- 1 staff account and 2 customers
- A small catalog, some products with buy-N-get-M-free offers
- A filled cart for alice
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.accounts.models import User
from apps.cart.models import Cart, CartItem
from apps.catalog.models import Product
from apps.orders.models import Order


PRODUCTS = [
    # name, manufacturer, price, stock, (buy, free, bundle_price) or None
    ('Paracetamol 500mg (20 tabs)', 'Generic Pharma', '3.20', 120, None),
    ('Ibuprofen 400mg (24 tabs)', 'Generic Pharma', '4.50', 80, (2, 1, '9.00')),
    ('Vitamin C 1000mg', 'Vita Labs', '10.00', 60, (10, 2, '50.00')),
    ('Vitamin D3 2000 IU', 'Vita Labs', '8.90', 45, (3, 1, '26.70')),
    ('Zinc Lozenges', 'Throat Care', '6.00', 7, None),
    ('Saline Nasal Spray', 'Clear Breath', '5.40', 25, None),
    ('Hand Sanitizer 250ml', 'CleanCo', '2.99', 200, (4, 1, '11.96')),
    ('Elastic Bandage', 'First Aid Co', '3.75', 3, None),
]


class Command(BaseCommand):
    help = 'Create sample data for testing the API'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before creating new sample data',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Creating sample data...')

        users = self.create_users()
        products = self.create_products()
        self.fill_cart(users['alice'], products)

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write('')
        self.stdout.write('Test accounts:')
        self.stdout.write('  admin@example.com / admin123 (staff)')
        self.stdout.write('  alice@example.com / password123')
        self.stdout.write('  bob@example.com / password123')

    def clear_data(self):
        Order.objects.all().delete()
        Cart.objects.all().delete()
        Product.objects.all().delete()
        User.objects.filter(email__in=['admin@example.com', 'alice@example.com', 'bob@example.com']).delete()

    def create_users(self):
        self.stdout.write('  Creating users...')
        users = {}

        admin, created = User.objects.get_or_create(
            email='admin@example.com',
            defaults={'first_name': 'Admin', 'is_staff': True, 'is_superuser': True},
        )
        if created:
            admin.set_password('admin123')
            admin.save()
        users['admin'] = admin

        for name in ('alice', 'bob'):
            user, created = User.objects.get_or_create(
                email=f'{name}@example.com',
                defaults={'first_name': name.capitalize()},
            )
            if created:
                user.set_password('password123')
                user.save()
            users[name] = user

        return users

    def create_products(self):
        self.stdout.write('  Creating products...')
        products = []
        for name, manufacturer, price, stock, bundle in PRODUCTS:
            defaults = {
                'manufacturer': manufacturer,
                'price': Decimal(price),
                'stock_quantity': stock,
                'is_bundle_offer': bundle is not None,
            }
            if bundle:
                buy, free, bundle_price = bundle
                defaults.update(
                    bundle_buy_quantity=buy,
                    bundle_free_quantity=free,
                    bundle_price=Decimal(bundle_price),
                )
            product, _ = Product.objects.update_or_create(name=name, defaults=defaults)
            product.full_clean()
            products.append(product)
        return products

    def fill_cart(self, user, products):
        self.stdout.write('  Filling a cart for %s...' % user.email)
        cart, _ = Cart.objects.get_or_create(user=user)
        by_name = {p.name: p for p in products}
        for name, quantity in [('Vitamin C 1000mg', 13), ('Paracetamol 500mg (20 tabs)', 2)]:
            CartItem.objects.update_or_create(
                cart=cart,
                product=by_name[name],
                defaults={'quantity': quantity},
            )
