from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class Product(models.Model):
    """Sellable item with live stock and an optional buy-N-get-M-free offer."""

    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)
    manufacturer = models.CharField(max_length=200, blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    stock_quantity = models.PositiveIntegerField(default=0)

    # Bundle offer: buy `bundle_buy_quantity`, get `bundle_free_quantity`
    # free, and pay `bundle_price` for the whole group.
    is_bundle_offer = models.BooleanField(default=False)
    bundle_buy_quantity = models.PositiveIntegerField(null=True, blank=True)
    bundle_free_quantity = models.PositiveIntegerField(null=True, blank=True)
    bundle_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.01'))],
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        ordering = ['name']
        indexes = [
            models.Index(fields=['is_active', 'stock_quantity'], name='products_active_stock_idx'),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        super().clean()
        if not self.is_bundle_offer:
            return

        errors = {}
        for field in ('bundle_buy_quantity', 'bundle_free_quantity', 'bundle_price'):
            value = getattr(self, field)
            if value is None or value <= 0:
                errors[field] = 'Required and must be positive when the bundle offer is on.'
        if errors:
            raise ValidationError(errors)

    @property
    def bundle_size(self):
        """Units per bundle, or None without a usable offer."""
        if not self.is_bundle_offer or not self.bundle_buy_quantity or not self.bundle_free_quantity:
            return None
        return self.bundle_buy_quantity + self.bundle_free_quantity

    @property
    def in_stock(self):
        return self.stock_quantity > 0
