from django.contrib import admin
from .models import AuditLog, PlatformActivity


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('action', 'entity_type', 'entity_id', 'user', 'role', 'allowed', 'store', 'created_at')
    list_filter = ('action', 'allowed', 'entity_type')
    search_fields = ('entity_id', 'permission', 'user__email')
    readonly_fields = [field.name for field in AuditLog._meta.fields]
    ordering = ('-created_at',)


@admin.register(PlatformActivity)
class PlatformActivityAdmin(admin.ModelAdmin):
    list_display = ('action', 'actor', 'target_user', 'store', 'created_at')
    list_filter = ('action',)
    search_fields = ('description', 'actor__email', 'target_user__email')
    readonly_fields = [field.name for field in PlatformActivity._meta.fields]
    ordering = ('-created_at',)
