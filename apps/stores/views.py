import logging

from django.db import transaction
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema

from apps.rbac.context import get_store_role
from apps.rbac.permissions import (
    HasRolePermission,
    IsStoreManager,
    IsStoreMember,
    get_store_for_view,
)
from apps.rbac.exceptions import NotFoundError
from apps.utils.baseViews import BaseAPIView, ResponseEnvelopeMixin
from .models import Membership, Organization, Store, StoreStaff
from .serializers import (
    StaffInviteSerializer,
    StaffUpdateSerializer,
    StoreSerializer,
    StoreStaffSerializer,
)
from .services import StaffService

logger = logging.getLogger(__name__)


class StoreViewSet(ResponseEnvelopeMixin, viewsets.ModelViewSet):
    """
    Stores visible to the user. Creating a store creates its organization
    with the creator as OWNER.
    """
    serializer_class = StoreSerializer
    lookup_url_kwarg = 'store_id'
    http_method_names = ['get', 'post', 'patch', 'head', 'options']
    required_permissions = {
        'partial_update': 'stores:update',
    }

    def get_permissions(self):
        if self.action in ('retrieve', 'role'):
            return [IsAuthenticated(), IsStoreMember()]
        return [IsAuthenticated(), HasRolePermission()]

    def get_queryset(self):
        return Store.objects.accessible_to(self.request.user).select_related('organization')

    @transaction.atomic
    def perform_create(self, serializer):
        organization = Organization.objects.create(name=serializer.validated_data['name'])
        Membership.objects.create(user=self.request.user, organization=organization, role='OWNER')
        store = serializer.save(organization=organization)
        logger.info(f"Store {store.pk} created by {self.request.user.email}")

    @action(detail=True, methods=['get'])
    def role(self, request, store_id=None):
        store = get_store_for_view(self)
        return self.format_response(
            data={'store_id': store.pk, 'role': get_store_role(request.user, store.pk)},
            message="Store role retrieved successfully"
        )


class StoreStaffViewSet(ResponseEnvelopeMixin, viewsets.ViewSet):
    """
    Staff of one store. Organization owners and admins manage the list.
    """

    def get_permissions(self):
        if self.action == 'list':
            return [IsAuthenticated(), IsStoreMember()]
        return [IsAuthenticated(), IsStoreManager()]

    @property
    def store(self):
        return get_store_for_view(self)

    def get_staff(self, pk):
        try:
            return StoreStaff.objects.select_related('user', 'custom_role', 'store').get(store=self.store, pk=pk)
        except (StoreStaff.DoesNotExist, ValueError):
            raise NotFoundError('Staff member not found')

    def list(self, request, store_id=None):
        staff = StoreStaff.objects.filter(store=self.store).select_related('user', 'custom_role')
        if request.query_params.get('include_inactive') not in ('1', 'true'):
            staff = staff.filter(is_active=True)
        return self.format_response(
            data=StoreStaffSerializer(staff, many=True).data,
            message="Staff retrieved successfully"
        )

    @extend_schema(request=StaffInviteSerializer, responses=StoreStaffSerializer)
    def create(self, request, store_id=None):
        serializer = StaffInviteSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error(serializer)

        staff, reinvited = StaffService(request.user, request).invite(self.store, **serializer.validated_data)
        return self.format_response(
            data=StoreStaffSerializer(staff).data,
            message="Staff member re-invited" if reinvited else "Staff invitation sent",
            status_code=status.HTTP_200_OK if reinvited else status.HTTP_201_CREATED
        )

    @extend_schema(request=StaffUpdateSerializer, responses=StoreStaffSerializer)
    def partial_update(self, request, store_id=None, pk=None):
        staff = self.get_staff(pk)
        serializer = StaffUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error(serializer)

        staff, changes = StaffService(request.user, request).update(staff, **serializer.validated_data)
        return self.format_response(
            data=StoreStaffSerializer(staff).data,
            message="Staff member updated" if changes else "No changes detected"
        )

    def destroy(self, request, store_id=None, pk=None):
        StaffService(request.user, request).remove(self.get_staff(pk))
        return self.format_response(message="Staff member removed")


class StaffInvitationView(BaseAPIView):
    """
    The invited user's side of a staff invitation: POST accepts, DELETE declines.
    """

    def post(self, request, store_id):
        store = get_store_for_view(self)
        staff = StaffService(request.user, request).accept_invite(store)
        return self.format_response(
            data=StoreStaffSerializer(staff).data,
            message="Invitation accepted"
        )

    def delete(self, request, store_id):
        store = get_store_for_view(self)
        StaffService(request.user, request).decline_invite(store)
        return self.format_response(message="Invitation declined")
