import math
import logging

from django.conf import settings
from django.db.models import Count, Q, Case, When, IntegerField
from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.stores.models import Store
from apps.utils.baseViews import BaseAPIView, ResponseEnvelopeMixin
from .catalog import (
    AVAILABLE_PERMISSIONS,
    RESTRICTED_PERMISSIONS,
    SUGGESTED_ROLE_TEMPLATES,
    get_permissions_by_category,
)
from .constants import REQUEST_STATUSES
from .context import is_store_owner
from .exceptions import NotFoundError, RoleRequestError
from .models import CustomRole, CustomRoleRequest, PlatformSettings
from .permissions import (
    CanViewPermissionCatalog,
    IsStoreAdmin,
    IsStoreMember,
    IsStoreOwner,
    IsSuperAdmin,
    get_store_for_view,
)
from .serializers import (
    ApproveRequestSerializer,
    BulkLimitSerializer,
    CustomRoleActivitySerializer,
    CustomRoleRequestSerializer,
    CustomRoleSerializer,
    CustomRoleUpdateSerializer,
    PlatformSettingsSerializer,
    PlatformSettingsUpdateSerializer,
    RejectRequestSerializer,
    RequestModificationSerializer,
    RoleRequestCreateSerializer,
    RoleRequestFilterSerializer,
    RoleRequestUpdateSerializer,
    StoreLimitSerializer,
)
from .services import CustomRoleService, RoleRequestService, get_role_request_or_404

logger = logging.getLogger(__name__)


def _status_counts(queryset):
    counts = {status_name: 0 for status_name in REQUEST_STATUSES}
    for row in queryset.order_by().values('status').annotate(total=Count('id')):
        counts[row['status']] = row['total']
    return counts


def _limit_info(store):
    used = store.custom_role_usage
    return {
        'limit': store.custom_role_limit,
        'used': used,
        'remaining': max(0, store.custom_role_limit - used),
        'is_at_limit': used >= store.custom_role_limit,
    }


class StoreRoleRequestViewSet(ResponseEnvelopeMixin, viewsets.ViewSet):
    """
    Custom role requests of one store. Any store member can read them, only
    store admins can submit, edit or cancel.
    """

    def get_permissions(self):
        if self.action in ('list', 'retrieve'):
            return [IsAuthenticated(), IsStoreMember()]
        return [IsAuthenticated(), IsStoreAdmin()]

    def permission_denied(self, request, message=None, code=None):
        if request.user and request.user.is_authenticated and self.action == 'create':
            message = 'Forbidden - Store Admin access required to create custom roles'
        super().permission_denied(request, message=message, code=code)

    @property
    def store(self):
        return get_store_for_view(self)

    def get_request(self, pk):
        return get_role_request_or_404(CustomRoleRequest.objects.filter(store=self.store), pk=pk)

    @extend_schema(parameters=[OpenApiParameter('status', str, enum=REQUEST_STATUSES)])
    def list(self, request, store_id=None):
        requests = CustomRoleRequest.objects.filter(store=self.store).select_related('user', 'reviewed_by', 'store')
        status_filter = request.query_params.get('status')
        if status_filter:
            requests = requests.filter(status=status_filter)

        custom_roles = (
            CustomRole.objects.filter(store=self.store, is_active=True)
            .annotate(staff_count=Count('staff', filter=Q(staff__is_active=True)))
        )

        return self.format_response(
            data={
                'requests': CustomRoleRequestSerializer(requests, many=True).data,
                'custom_roles': CustomRoleSerializer(custom_roles, many=True).data,
                'counts': _status_counts(CustomRoleRequest.objects.filter(store=self.store)),
                **_limit_info(self.store),
            },
            message="Role requests retrieved successfully"
        )

    def retrieve(self, request, store_id=None, pk=None):
        role_request = self.get_request(pk)
        return self.format_response(
            data=CustomRoleRequestSerializer(role_request).data,
            message="Role request retrieved successfully"
        )

    @extend_schema(request=RoleRequestCreateSerializer, responses=CustomRoleRequestSerializer)
    def create(self, request, store_id=None):
        serializer = RoleRequestCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error(serializer)

        role_request = RoleRequestService(request.user, request).submit(self.store, **serializer.validated_data)
        return self.format_response(
            data=CustomRoleRequestSerializer(role_request).data,
            message="Custom role request submitted successfully. Awaiting Super Admin approval.",
            status_code=status.HTTP_201_CREATED
        )

    @extend_schema(request=RoleRequestUpdateSerializer, responses=CustomRoleRequestSerializer)
    def partial_update(self, request, store_id=None, pk=None):
        role_request = self.get_request(pk)
        serializer = RoleRequestUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error(serializer)

        role_request = RoleRequestService(request.user, request).update(role_request, **serializer.validated_data)
        return self.format_response(
            data=CustomRoleRequestSerializer(role_request).data,
            message="Role request updated successfully"
        )

    def destroy(self, request, store_id=None, pk=None):
        role_request = RoleRequestService(request.user, request).cancel(self.get_request(pk))
        return self.format_response(
            data=CustomRoleRequestSerializer(role_request).data,
            message="Role request cancelled"
        )


class StoreCustomRoleViewSet(ResponseEnvelopeMixin, viewsets.ViewSet):
    """
    Approved custom roles of a store. Changes are limited to the
    organization owner.
    """

    def get_permissions(self):
        if self.action in ('list', 'retrieve'):
            return [IsAuthenticated(), IsStoreMember()]
        return [IsAuthenticated(), IsStoreOwner()]

    def permission_denied(self, request, message=None, code=None):
        if request.user and request.user.is_authenticated:
            if self.action == 'partial_update':
                message = 'Only store owners can update custom roles'
            elif self.action == 'destroy':
                message = 'Only store owners can delete custom roles'
        super().permission_denied(request, message=message, code=code)

    @property
    def store(self):
        return get_store_for_view(self)

    def get_queryset(self):
        return (
            CustomRole.objects.filter(store=self.store)
            .select_related('created_by')
            .annotate(staff_count=Count('staff', filter=Q(staff__is_active=True)))
        )

    def get_role(self, pk):
        try:
            return self.get_queryset().get(pk=pk)
        except (CustomRole.DoesNotExist, ValueError):
            raise NotFoundError('Role not found')

    @extend_schema(parameters=[OpenApiParameter('is_active', bool)])
    def list(self, request, store_id=None):
        roles = self.get_queryset()
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            roles = roles.filter(is_active=is_active.lower() in ('1', 'true'))

        return self.format_response(
            data={
                'custom_roles': CustomRoleSerializer(roles, many=True).data,
                'is_owner': is_store_owner(request.user, self.store),
                **_limit_info(self.store),
            },
            message="Custom roles retrieved successfully"
        )

    def retrieve(self, request, store_id=None, pk=None):
        from apps.stores.serializers import StoreStaffSerializer

        role = self.get_role(pk)
        data = CustomRoleSerializer(role).data
        data['staff'] = StoreStaffSerializer(
            role.staff.filter(is_active=True).select_related('user'), many=True
        ).data
        data['activities'] = CustomRoleActivitySerializer(
            role.activities.select_related('actor')[:10], many=True
        ).data
        data['is_owner'] = is_store_owner(request.user, self.store)
        return self.format_response(data=data, message="Custom role retrieved successfully")

    @extend_schema(request=CustomRoleUpdateSerializer, responses=CustomRoleSerializer)
    def partial_update(self, request, store_id=None, pk=None):
        role = self.get_role(pk)
        serializer = CustomRoleUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error(serializer)

        role, changes = CustomRoleService(request.user, request).update_role(role, **serializer.validated_data)
        if not changes:
            return self.format_response(
                data=CustomRoleSerializer(role).data,
                message="No changes detected"
            )
        return self.format_response(
            data={'role': CustomRoleSerializer(role).data, 'changes': sorted(changes)},
            message="Custom role updated successfully"
        )

    @extend_schema(parameters=[OpenApiParameter('force', bool)])
    def destroy(self, request, store_id=None, pk=None):
        role = self.get_role(pk)
        force = request.query_params.get('force', '').lower() == 'true'
        unassigned = CustomRoleService(request.user, request).delete_role(role, force=force)
        return self.format_response(
            data={'unassigned_staff': unassigned},
            message="Custom role deleted successfully"
        )


class PermissionCatalogView(BaseAPIView):
    """
    Permissions available for custom roles, grouped by category
    """
    permission_classes = [IsAuthenticated, CanViewPermissionCatalog]

    def get(self, request, store_id=None):
        return self.format_response(
            data={
                'categories': AVAILABLE_PERMISSIONS,
                'permissions_by_category': get_permissions_by_category(),
                'templates': SUGGESTED_ROLE_TEMPLATES,
                'restricted': RESTRICTED_PERMISSIONS,
            },
            message="Permission catalog retrieved successfully"
        )


# Super admin console
class AdminRoleRequestViewSet(ResponseEnvelopeMixin, viewsets.ViewSet):
    permission_classes = [IsAuthenticated, IsSuperAdmin]

    def get_request(self, pk):
        return get_role_request_or_404(CustomRoleRequest.objects.all(), pk=pk)

    @extend_schema(parameters=[RoleRequestFilterSerializer])
    def list(self, request):
        filters = RoleRequestFilterSerializer(data=request.query_params)
        if not filters.is_valid():
            return self.validation_error(filters)
        params = filters.validated_data

        queryset = CustomRoleRequest.objects.select_related('user', 'store', 'reviewed_by')
        counts = _status_counts(queryset)

        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('store_id'):
            queryset = queryset.filter(store_id=params['store_id'])
        if params.get('search'):
            search = params['search']
            queryset = queryset.filter(
                Q(role_name__icontains=search)
                | Q(store__name__icontains=search)
                | Q(user__email__icontains=search)
                | Q(user__name__icontains=search)
            )

        # Open requests first, newest first within a status
        status_order = Case(
            *[When(status=name, then=index) for index, name in enumerate(REQUEST_STATUSES)],
            output_field=IntegerField(),
        )
        queryset = queryset.annotate(status_order=status_order).order_by('status_order', '-created_at')

        page = params['page']
        limit = params.get('limit') or settings.RBAC_SETTINGS['ADMIN_PAGE_SIZE']
        total = queryset.count()
        offset = (page - 1) * limit

        return self.format_response(
            data={
                'requests': CustomRoleRequestSerializer(queryset[offset:offset + limit], many=True).data,
                'counts': counts,
                'meta': {
                    'total': total,
                    'page': page,
                    'limit': limit,
                    'total_pages': math.ceil(total / limit) if total else 0,
                },
            },
            message="Role requests retrieved successfully"
        )

    def retrieve(self, request, pk=None):
        role_request = self.get_request(pk)
        data = CustomRoleRequestSerializer(role_request).data
        data['store_limit'] = _limit_info(role_request.store)
        return self.format_response(data=data, message="Role request retrieved successfully")

    @extend_schema(request=ApproveRequestSerializer)
    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        role_request = self.get_request(pk)
        serializer = ApproveRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error(serializer)

        custom_role, was_modified = RoleRequestService(request.user, request).approve(
            role_request,
            modified_permissions=serializer.validated_data.get('modified_permissions'),
            notes=serializer.validated_data.get('notes', ''),
        )
        role_request.refresh_from_db()
        return self.format_response(
            data={
                'custom_role': CustomRoleSerializer(custom_role).data,
                'request': CustomRoleRequestSerializer(role_request).data,
                'was_modified': was_modified,
            },
            message="Role request approved with modifications" if was_modified else "Role request approved"
        )

    @extend_schema(request=RejectRequestSerializer)
    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        role_request = self.get_request(pk)
        serializer = RejectRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error(serializer)

        role_request = RoleRequestService(request.user, request).reject(role_request, **serializer.validated_data)
        return self.format_response(
            data=CustomRoleRequestSerializer(role_request).data,
            message="Role request rejected"
        )

    @extend_schema(request=RequestModificationSerializer)
    @action(detail=True, methods=['post'], url_path='request-modification')
    def request_modification(self, request, pk=None):
        role_request = self.get_request(pk)
        serializer = RequestModificationSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error(serializer)

        role_request = RoleRequestService(request.user, request).request_modification(
            role_request, **serializer.validated_data
        )
        return self.format_response(
            data=CustomRoleRequestSerializer(role_request).data,
            message="Modification request sent"
        )


class AdminStoreLimitView(BaseAPIView):
    permission_classes = [IsAuthenticated, IsSuperAdmin]

    def get_store(self, store_id):
        return get_object_or_404(Store, pk=store_id)

    def get(self, request, store_id):
        store = self.get_store(store_id)
        data = _limit_info(store)
        data.update({'store_id': store.pk, 'store_name': store.name, 'subscription_plan': store.subscription_plan})
        return self.format_response(data=data, message="Custom role limit retrieved successfully")

    @extend_schema(request=StoreLimitSerializer)
    def patch(self, request, store_id):
        store = self.get_store(store_id)
        serializer = StoreLimitSerializer(data=request.data)
        if not serializer.is_valid():
            raise RoleRequestError('Invalid limit value', extra={'errors': serializer.errors})

        previous_limit = CustomRoleService(request.user, request).set_store_limit(
            store, serializer.validated_data['custom_role_limit']
        )
        data = _limit_info(store)
        data['previous_limit'] = previous_limit
        return self.format_response(data=data, message="Custom role limit updated successfully")


class AdminBulkLimitView(BaseAPIView):
    permission_classes = [IsAuthenticated, IsSuperAdmin]

    @extend_schema(request=BulkLimitSerializer)
    def post(self, request):
        serializer = BulkLimitSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error(serializer)

        results = CustomRoleService(request.user, request).bulk_update_limits(**serializer.validated_data)
        updated = sum(1 for result in results if result['success'] and not result.get('skipped'))
        failed = sum(1 for result in results if not result['success'])
        return self.format_response(
            data={'results': results, 'updated': updated, 'failed': failed},
            message=f"Updated {updated} stores, {failed} failed"
        )


class PlatformSettingsView(BaseAPIView):
    permission_classes = [IsAuthenticated, IsSuperAdmin]

    def get(self, request):
        return self.format_response(
            data=PlatformSettingsSerializer(PlatformSettings.load()).data,
            message="Platform settings retrieved successfully"
        )

    @extend_schema(request=PlatformSettingsUpdateSerializer, responses=PlatformSettingsSerializer)
    def patch(self, request):
        serializer = PlatformSettingsUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error(serializer)

        platform = CustomRoleService(request.user, request).update_platform_settings(**serializer.validated_data)
        return self.format_response(
            data=PlatformSettingsSerializer(platform).data,
            message="Platform settings updated successfully"
        )
