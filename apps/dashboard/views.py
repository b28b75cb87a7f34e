from datetime import timedelta
from decimal import Decimal

from django.db.models import Avg, Count, F, Sum
from django.db.models.functions import TruncDate
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.models import CustomUser
from apps.audit.models import PlatformActivity
from apps.orders.models import Order, OrderItem
from apps.products.models import Product
from apps.rbac.context import require_store_access
from apps.rbac.models import CustomRole, CustomRoleRequest
from apps.rbac.permissions import IsSuperAdmin, role_permission_required
from apps.stores.models import Store
from .serializers import StoreAnalyticsSerializer, PlatformOverviewSerializer

# Orders that brought money in and were not given back
REVENUE_STATUSES = ['PAID', 'PROCESSING', 'SHIPPED', 'DELIVERED']


# ==================== STORE ANALYTICS ====================

@extend_schema(
    responses=StoreAnalyticsSerializer,
    parameters=[
        OpenApiParameter('start_date', str, description='YYYY-MM-DD'),
        OpenApiParameter('end_date', str, description='YYYY-MM-DD'),
    ],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
@role_permission_required('analytics:read')
def store_analytics(request, store_id):
    """
    Order, revenue and inventory figures for one store
    Query params: start_date, end_date (YYYY-MM-DD)
    """
    store = get_object_or_404(Store, pk=store_id)
    require_store_access(request.user, store.pk)

    orders_query = Order.objects.filter(store=store)
    start_date = request.GET.get('start_date')
    end_date = request.GET.get('end_date')
    if start_date and end_date:
        orders_query = orders_query.filter(created_at__date__gte=start_date, created_at__date__lte=end_date)

    orders_by_status = {code: 0 for code, _ in Order.STATUS_CHOICES}
    for row in orders_query.order_by().values('status').annotate(order_count=Count('id')):
        orders_by_status[row['status']] = row['order_count']

    paid_orders = orders_query.filter(status__in=REVENUE_STATUSES)
    revenue = paid_orders.aggregate(revenue_total=Sum('total'), revenue_average=Avg('total'))

    products = Product.objects.filter(store=store)

    top_products = [
        {
            'id': item['product__id'],
            'name': item['product__name'],
            'units_sold': item['units_sold'],
            'revenue': item['revenue'],
        }
        for item in OrderItem.objects.filter(order__in=paid_orders)
        .values('product__id', 'product__name')
        .annotate(units_sold=Sum('quantity'), revenue=Sum(F('quantity') * F('price')))
        .order_by('-revenue')[:5]
    ]

    thirty_days_ago = timezone.now() - timedelta(days=30)
    revenue_trend = [
        {'date': item['day'], 'revenue': item['revenue'], 'orders': item['orders']}
        for item in paid_orders.filter(created_at__gte=thirty_days_ago)
        .annotate(day=TruncDate('created_at'))
        .values('day')
        .annotate(revenue=Sum('total'), orders=Count('id'))
        .order_by('day')
    ]

    data = {
        'store_id': store.pk,
        'total_orders': orders_query.count(),
        'orders_by_status': orders_by_status,
        'total_revenue': revenue['revenue_total'] or Decimal('0.00'),
        'average_order_value': revenue['revenue_average'] or Decimal('0.00'),
        'total_products': products.count(),
        'active_products': products.filter(is_active=True).count(),
        'low_stock_count': products.filter(inventory_status='LOW_STOCK').count(),
        'out_of_stock_count': products.filter(inventory_status='OUT_OF_STOCK').count(),
        'top_products': top_products,
        'revenue_trend': revenue_trend,
    }
    return Response(StoreAnalyticsSerializer(data).data)


# ==================== PLATFORM OVERVIEW ====================

@extend_schema(responses=PlatformOverviewSerializer)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def platform_overview(request):
    users_by_status = {
        row['account_status']: row['total']
        for row in CustomUser.objects.order_by().values('account_status').annotate(total=Count('id'))
    }
    stores_by_plan = {
        row['subscription_plan']: row['total']
        for row in Store.objects.order_by().values('subscription_plan').annotate(total=Count('id'))
    }
    recent_activity = [
        {
            'action': activity.action,
            'description': activity.description,
            'actor': activity.actor.email if activity.actor else None,
            'created_at': activity.created_at,
        }
        for activity in PlatformActivity.objects.select_related('actor').order_by('-created_at')[:10]
    ]

    data = {
        'users_by_status': users_by_status,
        'stores_by_plan': stores_by_plan,
        'total_stores': sum(stores_by_plan.values()),
        'open_role_requests': CustomRoleRequest.objects.open().count(),
        'total_custom_roles': CustomRole.objects.count(),
        'recent_activity': recent_activity,
    }
    return Response(PlatformOverviewSerializer(data).data)
