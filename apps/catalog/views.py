from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter

from .pricing import price_product_line
from .serializers import (
    ProductSerializer,
    LinePriceQuerySerializer,
    LinePriceSerializer,
    LowStockQuerySerializer,
)
from .services import get_active_products, get_low_stock_products


class ProductPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Active products.

    list: Browse products (?search=)
    retrieve: Product detail
    price: Bundle-aware price preview for a quantity
    low_stock: Staff only, products at or below the low-stock threshold
    """

    serializer_class = ProductSerializer
    permission_classes = [AllowAny]
    pagination_class = ProductPagination

    def get_queryset(self):
        return get_active_products(search=self.request.query_params.get('search'))

    @extend_schema(
        parameters=[OpenApiParameter('quantity', int, required=True)],
        responses={200: LinePriceSerializer},
    )
    @action(detail=True, methods=['get'])
    def price(self, request, pk=None):
        product = self.get_object()
        query = LinePriceQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        quantity = query.validated_data['quantity']

        line = price_product_line(product, quantity)
        return Response(LinePriceSerializer({
            'product_id': product.id,
            'quantity': quantity,
            'unit_price': product.price,
            'total': line.total,
            'free_units': line.free_units,
        }).data)

    @extend_schema(
        parameters=[OpenApiParameter('threshold', int, required=False)],
        responses={200: ProductSerializer(many=True)},
    )
    @action(detail=False, methods=['get'], url_path='low-stock', permission_classes=[IsAdminUser])
    def low_stock(self, request):
        query = LowStockQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        products = get_low_stock_products(threshold=query.validated_data.get('threshold'))
        return Response(ProductSerializer(products, many=True).data)
