from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    list_display = ('email', 'name', 'account_status', 'is_super_admin', 'is_active', 'date_joined')
    list_filter = ('account_status', 'is_super_admin', 'is_active')
    search_fields = ('email', 'name')
    ordering = ('-date_joined',)
    filter_horizontal = ()

    fieldsets = (
        (None, {'fields': ('email', 'name', 'password')}),
        ('Platform', {'fields': ('account_status', 'approved_at', 'is_super_admin')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'name', 'password1', 'password2'),
        }),
    )

    readonly_fields = ('approved_at',)
