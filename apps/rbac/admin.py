from django.contrib import admin
from .models import CustomRole, CustomRoleActivity, CustomRoleRequest, PlatformSettings


@admin.register(CustomRole)
class CustomRoleAdmin(admin.ModelAdmin):
    list_display = ('name', 'store', 'is_active', 'approved_by', 'approved_at', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('name', 'store__name')
    readonly_fields = ('created_at', 'updated_at', 'last_modified_at', 'approved_at')


@admin.register(CustomRoleRequest)
class CustomRoleRequestAdmin(admin.ModelAdmin):
    list_display = ('role_name', 'store', 'user', 'status', 'reviewed_by', 'created_at')
    list_filter = ('status',)
    search_fields = ('role_name', 'store__name', 'user__email')
    readonly_fields = ('created_at', 'updated_at', 'reviewed_at')
    ordering = ('-created_at',)


@admin.register(CustomRoleActivity)
class CustomRoleActivityAdmin(admin.ModelAdmin):
    list_display = ('action', 'role_name', 'store', 'actor', 'created_at')
    list_filter = ('action',)
    search_fields = ('role_name', 'store__name')
    readonly_fields = [field.name for field in CustomRoleActivity._meta.fields]


@admin.register(PlatformSettings)
class PlatformSettingsAdmin(admin.ModelAdmin):
    list_display = ('default_custom_role_limit', 'max_custom_role_limit', 'updated_by', 'updated_at')

    def has_add_permission(self, request):
        return not PlatformSettings.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False
