from rest_framework import viewsets, permissions, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.rbac.context import stores_with_permission
from apps.rbac.permissions import HasRolePermission, IsStoreMember, get_store_for_view
from apps.stores.models import Store
from apps.utils.baseViews import ResponseEnvelopeMixin
from .models import Order, DiscountCode
from .serializers import (
    DiscountCodeSerializer,
    DiscountValidateSerializer,
    OrderDetailSerializer,
    OrderListSerializer,
    OrderStatusUpdateSerializer,
)
from .services import DiscountService, OrderService


class OrderViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Orders of the stores the user can access. Status changes go through
    update-status so transitions are validated.
    """
    permission_classes = [permissions.IsAuthenticated, HasRolePermission]
    required_permissions = {
        'list': 'orders:read',
        'retrieve': 'orders:read',
        'update_status': 'orders:update',
    }
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['order_number', 'customer_email', 'customer_name']
    ordering_fields = ['created_at', 'updated_at', 'total']
    ordering = ['-created_at']

    def get_queryset(self):
        if self.action == 'list':
            stores = stores_with_permission(self.request.user, 'orders:read')
        else:
            stores = Store.objects.accessible_to(self.request.user)
        queryset = Order.objects.filter(store__in=stores).select_related('store').prefetch_related('items__product')

        store_id = self.request.query_params.get('store')
        if store_id:
            queryset = queryset.filter(store_id=store_id)
        order_status = self.request.query_params.get('status')
        if order_status:
            queryset = queryset.filter(status=order_status)
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return OrderListSerializer
        return OrderDetailSerializer

    @extend_schema(request=OrderStatusUpdateSerializer, responses=OrderDetailSerializer)
    @action(detail=True, methods=['post'], url_path='update-status')
    def update_status(self, request, pk=None):
        order = self.get_object()
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = OrderService.update_status(
            order,
            new_status=data.get('status'),
            tracking_number=data.get('tracking_number'),
            admin_note=data.get('admin_note'),
        )
        return Response(OrderDetailSerializer(order).data)


class DiscountCodeViewSet(ResponseEnvelopeMixin, viewsets.ModelViewSet):
    serializer_class = DiscountCodeSerializer
    permission_classes = [permissions.IsAuthenticated, IsStoreMember, HasRolePermission]
    required_permissions = {
        'list': 'marketing:read',
        'retrieve': 'marketing:read',
        'create': 'marketing:create',
        'update': 'marketing:update',
        'partial_update': 'marketing:update',
        'destroy': 'marketing:delete',
    }

    def get_permissions(self):
        # Shoppers validate codes at checkout without being store members
        if self.action == 'validate_code':
            return [permissions.IsAuthenticated()]
        return super().get_permissions()

    @property
    def store(self):
        return get_store_for_view(self)

    def get_queryset(self):
        return DiscountCode.objects.filter(store=self.store)

    def perform_create(self, serializer):
        serializer.save(store=self.store)

    @extend_schema(request=DiscountValidateSerializer)
    @action(detail=False, methods=['post'], url_path='validate')
    def validate_code(self, request, store_id=None):
        serializer = DiscountValidateSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error(serializer)
        data = serializer.validated_data

        result = DiscountService(self.store).apply_code(
            data['code'],
            data['subtotal'],
            shipping_amount=data['shipping_amount'],
            customer_email=data.get('customer_email') or None,
        )
        return self.format_response(
            data=result,
            message="Discount code applied" if result['valid'] else result['error'],
            success=result['valid'],
            status_code=status.HTTP_200_OK
        )
