from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'catalog'

router = DefaultRouter()
router.register(r'', views.ProductViewSet, basename='product')

urlpatterns = [
    # GET /api/products/                      - List active products
    # GET /api/products/{id}/                 - Product detail
    # GET /api/products/{id}/price/?quantity= - Line price preview
    # GET /api/products/low-stock/            - Staff: low-stock report
    path('', include(router.urls)),
]
