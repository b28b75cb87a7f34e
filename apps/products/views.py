from django.db import models
from rest_framework import pagination, permissions, status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from rest_framework.viewsets import ModelViewSet
from drf_spectacular.utils import extend_schema

from apps.rbac.context import check_permission, stores_with_permission
from apps.rbac.permissions import HasRolePermission
from apps.stores.models import Store
from .models import Category, Product
from .serializers import (
    CategorySerializer,
    InventoryLogSerializer,
    ProductSerializer,
    ProductUpdateSerializer,
    StockAdjustmentSerializer,
)
from .services import InventoryService


class CustomPagination(pagination.PageNumberPagination):
    page_size = 12
    page_size_query_param = 'page_size'
    max_page_size = 100


class StoreScopedMixin:
    """
    Limits list querysets to stores where the user holds the action's
    permission, optionally narrowed with ``?store=<id>``, and checks writes
    against the roles held in the target store.
    """

    def scope_to_stores(self, queryset):
        permission = self.required_permissions.get(self.action)
        if permission and not self.detail:
            queryset = queryset.filter(store_id__in=stores_with_permission(self.request.user, permission))
        else:
            queryset = queryset.filter(store__in=Store.objects.accessible_to(self.request.user))
        store_id = self.request.query_params.get('store')
        if store_id:
            queryset = queryset.filter(store_id=store_id)
        return queryset

    def check_store_access(self, store):
        permission = self.required_permissions[self.action]
        if not check_permission(self.request.user, permission, request=self.request, store=store):
            raise PermissionDenied(f'Permission denied: {permission} required')


class CategoryViewSet(StoreScopedMixin, ModelViewSet):
    serializer_class = CategorySerializer
    permission_classes = [permissions.IsAuthenticated, HasRolePermission]
    required_permissions = {
        'list': 'categories:read',
        'retrieve': 'categories:read',
        'create': 'categories:create',
        'update': 'categories:update',
        'partial_update': 'categories:update',
        'destroy': 'categories:delete',
    }

    def get_queryset(self):
        queryset = self.scope_to_stores(Category.objects.all())
        if self.action == 'list':
            # Roots only, children are nested in the response
            queryset = queryset.filter(parent__isnull=True)
        return queryset

    def perform_create(self, serializer):
        self.check_store_access(serializer.validated_data['store'])
        serializer.save()


class ProductViewSet(StoreScopedMixin, ModelViewSet):
    permission_classes = [permissions.IsAuthenticated, HasRolePermission]
    pagination_class = CustomPagination
    required_permissions = {
        'list': 'products:read',
        'retrieve': 'products:read',
        'create': 'products:create',
        'update': 'products:update',
        'partial_update': 'products:update',
        'destroy': 'products:delete',
        'adjust_stock': 'inventory:update',
        'inventory_logs': 'inventory:read',
        'low_stock': 'inventory:read',
    }

    def get_serializer_class(self):
        if self.action in ('update', 'partial_update'):
            return ProductUpdateSerializer
        return ProductSerializer

    def get_queryset(self):
        queryset = self.scope_to_stores(Product.objects.select_related('category', 'store'))
        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(models.Q(name__icontains=search) | models.Q(sku__icontains=search))
        return queryset

    def perform_create(self, serializer):
        self.check_store_access(serializer.validated_data['store'])
        serializer.save()

    @extend_schema(request=StockAdjustmentSerializer, responses=ProductSerializer)
    @action(detail=True, methods=['post'], url_path='adjust-stock')
    def adjust_stock(self, request, pk=None):
        product = self.get_object()
        serializer = StockAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        product = InventoryService.adjust_stock(
            product,
            quantity=data['quantity'],
            adjustment_type=data['type'],
            reason=data['reason'],
            note=data.get('note', ''),
            user=request.user,
        )
        return Response(ProductSerializer(product).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['get'], url_path='inventory-logs')
    def inventory_logs(self, request, pk=None):
        product = self.get_object()
        logs = product.inventory_logs.select_related('user')[:50]
        return Response(InventoryLogSerializer(logs, many=True).data)

    @action(detail=False, methods=['get'], url_path='low-stock')
    def low_stock(self, request):
        products = self.get_queryset().filter(inventory_status__in=['LOW_STOCK', 'OUT_OF_STOCK'])
        return Response(ProductSerializer(products.order_by('inventory_qty'), many=True).data)
