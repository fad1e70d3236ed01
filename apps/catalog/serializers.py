from rest_framework import serializers

from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Storefront view of a product, including its bundle offer."""

    in_stock = serializers.BooleanField(read_only=True)
    bundle_size = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Product
        fields = [
            'id',
            'name',
            'description',
            'manufacturer',
            'price',
            'stock_quantity',
            'in_stock',
            'is_bundle_offer',
            'bundle_buy_quantity',
            'bundle_free_quantity',
            'bundle_price',
            'bundle_size',
        ]
        read_only_fields = fields


class LinePriceQuerySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


class LowStockQuerySerializer(serializers.Serializer):
    threshold = serializers.IntegerField(min_value=0, required=False)


class LinePriceSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    free_units = serializers.IntegerField()
