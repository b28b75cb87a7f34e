from rest_framework import serializers

from apps.accounts.serializers import UserSummarySerializer
from apps.rbac.constants import STORE_ROLES
from .models import Organization, Store, StoreStaff


class OrganizationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Organization
        fields = ['id', 'name', 'slug', 'created_at']
        read_only_fields = ['slug', 'created_at']


class StoreSerializer(serializers.ModelSerializer):
    organization = OrganizationSerializer(read_only=True)
    custom_role_usage = serializers.IntegerField(read_only=True)

    class Meta:
        model = Store
        fields = [
            'id', 'organization', 'name', 'slug', 'email', 'currency',
            'subscription_plan', 'custom_role_limit', 'custom_role_usage',
            'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['slug', 'subscription_plan', 'custom_role_limit', 'is_active', 'created_at', 'updated_at']


class StoreStaffSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    role_name = serializers.CharField(read_only=True)
    custom_role_name = serializers.CharField(source='custom_role.name', read_only=True, default=None)

    class Meta:
        model = StoreStaff
        fields = [
            'id', 'user', 'store', 'role', 'custom_role', 'custom_role_name', 'role_name',
            'is_active', 'invited_by', 'invited_at', 'accepted_at', 'created_at',
        ]
        read_only_fields = fields


class StaffInviteSerializer(serializers.Serializer):
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=STORE_ROLES, required=False, allow_null=True)
    custom_role_id = serializers.IntegerField(required=False, allow_null=True)


class StaffUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=STORE_ROLES, required=False, allow_null=True)
    custom_role_id = serializers.IntegerField(required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False)
