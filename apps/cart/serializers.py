from rest_framework import serializers

from apps.catalog.serializers import ProductSerializer


class CartLineSerializer(serializers.Serializer):
    """One priced cart line (serializes a services.CartLine)."""

    id = serializers.IntegerField(source='item.id')
    product = ProductSerializer(source='item.product')
    quantity = serializers.IntegerField(source='item.quantity')
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    free_units = serializers.IntegerField()


class CartSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField(source='cart.id')
    items = CartLineSerializer(source='lines', many=True)
    item_count = serializers.IntegerField()
    total = serializers.DecimalField(max_digits=12, decimal_places=2)


class AddCartItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class UpdateCartItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
