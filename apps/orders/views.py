from rest_framework import viewsets, status, serializers
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter

from .serializers import (
    OrderSerializer,
    CheckoutSerializer,
    OrderStatusUpdateSerializer,
    PaymentStatusUpdateSerializer,
)
from .services import (
    create_order,
    update_order_status,
    update_payment_status,
    get_user_orders,
    get_order_for_user,
    list_orders,
    EmptyCartError,
    InsufficientStockError,
    OrderNotFoundError,
    InvalidOrderStatusError,
)


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


class OrderViewSet(viewsets.ViewSet):
    """
    Customer orders and staff order management.

    list: Current user's orders
    create: Check out the current cart
    retrieve: Order detail (own orders; staff see all)
    admin_list: Staff, all orders (?status=)
    set_status: Staff, change order status
    set_payment_status: Staff, change payment status
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r'\d+'

    @extend_schema(responses={200: OrderSerializer(many=True)}, tags=['orders'])
    def list(self, request):
        orders = get_user_orders(user=request.user)
        return Response(OrderSerializer(orders, many=True).data)

    @extend_schema(
        request=CheckoutSerializer,
        responses={
            201: OrderSerializer,
            400: ErrorResponseSerializer,
            409: ErrorResponseSerializer,
        },
        description="Place an order for the whole cart. Bundle offers are applied per line.",
        tags=['orders'],
    )
    def create(self, request):
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = create_order(user=request.user, **serializer.validated_data)
        except EmptyCartError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except InsufficientStockError as e:
            return Response(
                {'error': str(e), 'product_id': e.product.pk},
                status=status.HTTP_409_CONFLICT
            )

        order = get_order_for_user(order_id=order.pk, user=request.user)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: OrderSerializer, 404: ErrorResponseSerializer}, tags=['orders'])
    def retrieve(self, request, pk=None):
        try:
            order = get_order_for_user(order_id=pk, user=request.user)
        except OrderNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(OrderSerializer(order).data)

    @extend_schema(
        parameters=[OpenApiParameter('status', str, required=False)],
        responses={200: OrderSerializer(many=True), 400: ErrorResponseSerializer},
        tags=['orders'],
    )
    @action(detail=False, methods=['get'], url_path='admin', permission_classes=[IsAdminUser])
    def admin_list(self, request):
        try:
            orders = list_orders(status=request.query_params.get('status'))
        except InvalidOrderStatusError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(OrderSerializer(orders, many=True).data)

    @extend_schema(
        request=OrderStatusUpdateSerializer,
        responses={200: OrderSerializer, 404: ErrorResponseSerializer},
        tags=['orders'],
    )
    @action(detail=True, methods=['patch'], url_path='status', permission_classes=[IsAdminUser])
    def set_status(self, request, pk=None):
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = update_order_status(order_id=pk, status=serializer.validated_data['status'])
        except OrderNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidOrderStatusError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        order = get_order_for_user(order_id=order.pk, user=request.user)
        return Response(OrderSerializer(order).data)

    @extend_schema(
        request=PaymentStatusUpdateSerializer,
        responses={200: OrderSerializer, 404: ErrorResponseSerializer},
        tags=['orders'],
    )
    @action(detail=True, methods=['patch'], url_path='payment-status', permission_classes=[IsAdminUser])
    def set_payment_status(self, request, pk=None):
        serializer = PaymentStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = update_payment_status(
                order_id=pk,
                payment_status=serializer.validated_data['payment_status'],
            )
        except OrderNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidOrderStatusError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        order = get_order_for_user(order_id=order.pk, user=request.user)
        return Response(OrderSerializer(order).data)
