from rest_framework import serializers

from apps.accounts.serializers import UserSummarySerializer
from .constants import ROLE_NAME_PATTERN, REQUEST_STATUSES, SUBSCRIPTION_PLANS
from .models import CustomRole, CustomRoleActivity, CustomRoleRequest, PlatformSettings


class PermissionListField(serializers.ListField):
    child = serializers.CharField(max_length=100)


class RoleRequestCreateSerializer(serializers.Serializer):
    role_name = serializers.RegexField(
        ROLE_NAME_PATTERN,
        min_length=2,
        max_length=50,
        error_messages={'invalid': 'Role name can only contain letters, numbers, spaces, hyphens, and underscores'},
    )
    role_description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    permissions = PermissionListField(min_length=1)
    justification = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class RoleRequestUpdateSerializer(RoleRequestCreateSerializer):
    def __init__(self, *args, **kwargs):
        kwargs.setdefault('partial', True)
        super().__init__(*args, **kwargs)


class ApproveRequestSerializer(serializers.Serializer):
    modified_permissions = PermissionListField(required=False, allow_empty=True)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class RejectRequestSerializer(serializers.Serializer):
    reason = serializers.CharField(min_length=10, max_length=1000)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class RequestModificationSerializer(serializers.Serializer):
    message = serializers.CharField(min_length=10, max_length=2000)
    suggested_permissions = PermissionListField(required=False, allow_empty=True)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class CustomRoleRequestSerializer(serializers.ModelSerializer):
    store_name = serializers.CharField(source='store.name', read_only=True)
    user = UserSummarySerializer(read_only=True)
    reviewed_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = CustomRoleRequest
        fields = [
            'id', 'store', 'store_name', 'user', 'role_name', 'role_description',
            'permissions', 'justification', 'status', 'reviewed_by', 'reviewed_at',
            'rejection_reason', 'admin_notes', 'modified_permissions', 'custom_role',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class CustomRoleSerializer(serializers.ModelSerializer):
    staff_count = serializers.SerializerMethodField()
    created_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = CustomRole
        fields = [
            'id', 'store', 'name', 'description', 'permissions', 'is_active',
            'staff_count', 'created_by', 'approved_at', 'last_modified_at',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_staff_count(self, obj):
        annotated = getattr(obj, 'staff_count', None)
        if annotated is not None:
            return annotated
        return obj.staff.filter(is_active=True).count()


class CustomRoleActivitySerializer(serializers.ModelSerializer):
    actor = UserSummarySerializer(read_only=True)

    class Meta:
        model = CustomRoleActivity
        fields = ['id', 'action', 'actor', 'role_name', 'details', 'previous_value', 'new_value', 'created_at']


class CustomRoleUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=50, required=False, allow_blank=True)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    permissions = PermissionListField(required=False, allow_empty=True)
    is_active = serializers.BooleanField(required=False)


class StoreLimitSerializer(serializers.Serializer):
    custom_role_limit = serializers.IntegerField()


class BulkLimitSerializer(serializers.Serializer):
    apply_plan_defaults = serializers.BooleanField(default=False)
    store_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
    limit = serializers.IntegerField(required=False)


class PlatformSettingsSerializer(serializers.ModelSerializer):
    subscription_plans = serializers.SerializerMethodField()

    class Meta:
        model = PlatformSettings
        fields = [
            'default_custom_role_limit', 'max_custom_role_limit',
            'custom_role_limits_by_plan', 'subscription_plans', 'updated_at',
        ]

    def get_subscription_plans(self, obj):
        return SUBSCRIPTION_PLANS


class PlatformSettingsUpdateSerializer(serializers.Serializer):
    default_custom_role_limit = serializers.IntegerField(required=False)
    max_custom_role_limit = serializers.IntegerField(required=False)
    custom_role_limits_by_plan = serializers.DictField(child=serializers.IntegerField(), required=False)


class RoleRequestFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=REQUEST_STATUSES, required=False)
    store_id = serializers.IntegerField(required=False)
    search = serializers.CharField(required=False, allow_blank=True)
    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)
