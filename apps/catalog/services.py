"""Catalog queries."""

from django.conf import settings
from django.db.models import Q, QuerySet

from .models import Product


def get_active_products(*, search: str = None) -> QuerySet:
    queryset = Product.objects.filter(is_active=True)
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) |
            Q(manufacturer__icontains=search) |
            Q(description__icontains=search)
        )
    return queryset


def get_low_stock_products(*, threshold: int = None) -> QuerySet:
    """Active products with ``stock_quantity <= threshold``, emptiest first."""
    if threshold is None:
        threshold = settings.LOW_STOCK_THRESHOLD
    return (
        Product.objects
        .filter(is_active=True, stock_quantity__lte=threshold)
        .order_by('stock_quantity', 'name')
    )
