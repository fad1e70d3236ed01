from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'orders'

router = DefaultRouter()
router.register(r'', views.OrderViewSet, basename='order')

urlpatterns = [
    # GET   /api/orders/                      - My orders
    # POST  /api/orders/                      - Checkout
    # GET   /api/orders/{id}/                 - Order detail
    # GET   /api/orders/admin/?status=        - Staff: all orders
    # PATCH /api/orders/{id}/status/          - Staff: order status
    # PATCH /api/orders/{id}/payment-status/  - Staff: payment status
    path('', include(router.urls)),
]
