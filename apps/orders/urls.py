from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import OrderViewSet, DiscountCodeViewSet

router = DefaultRouter()
router.register(r'orders', OrderViewSet, basename='order')
router.register(r'stores/(?P<store_id>\d+)/discounts', DiscountCodeViewSet, basename='store-discount')

urlpatterns = [
    path('', include(router.urls)),
]
