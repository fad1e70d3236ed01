from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.orders.services.exceptions import InsufficientStockError

from .exceptions import ProductNotFoundError, CartItemNotFoundError, InvalidQuantityError
from .serializers import CartSummarySerializer, AddCartItemSerializer, UpdateCartItemSerializer
from .services import add_item, update_item, remove_item, clear_cart, get_cart_summary


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


def _summary_response(user, status_code=status.HTTP_200_OK):
    return Response(CartSummarySerializer(get_cart_summary(user=user)).data, status=status_code)


def _error_response(error):
    if isinstance(error, (ProductNotFoundError, CartItemNotFoundError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, InsufficientStockError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return Response({'error': str(error)}, status=code)


@extend_schema(
    methods=['GET'],
    responses={200: CartSummarySerializer},
    description="Current cart with bundle-aware line subtotals.",
    tags=['cart'],
)
@extend_schema(
    methods=['DELETE'],
    responses={204: None},
    description="Remove every line from the cart.",
    tags=['cart'],
)
@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def cart_detail(request):
    if request.method == 'DELETE':
        clear_cart(user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)
    return _summary_response(request.user)


@extend_schema(
    request=AddCartItemSerializer,
    responses={
        201: CartSummarySerializer,
        404: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description="Add a product to the cart. Quantities for the same product are merged.",
    tags=['cart'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def add_cart_item(request):
    serializer = AddCartItemSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        add_item(user=request.user, **serializer.validated_data)
    except (ProductNotFoundError, InsufficientStockError, InvalidQuantityError) as e:
        return _error_response(e)

    return _summary_response(request.user, status.HTTP_201_CREATED)


@extend_schema(
    methods=['PATCH'],
    request=UpdateCartItemSerializer,
    responses={
        200: CartSummarySerializer,
        404: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description="Change a line's quantity.",
    tags=['cart'],
)
@extend_schema(
    methods=['DELETE'],
    responses={200: CartSummarySerializer, 404: ErrorResponseSerializer},
    description="Remove a line from the cart.",
    tags=['cart'],
)
@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def cart_item_detail(request, item_id):
    try:
        if request.method == 'DELETE':
            remove_item(user=request.user, item_id=item_id)
        else:
            serializer = UpdateCartItemSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            update_item(user=request.user, item_id=item_id, quantity=serializer.validated_data['quantity'])
    except (CartItemNotFoundError, InsufficientStockError, InvalidQuantityError) as e:
        return _error_response(e)

    return _summary_response(request.user)
