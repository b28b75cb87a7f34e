from django.contrib import admin
from .models import Organization, Membership, Store, StoreStaff


class MembershipInline(admin.TabularInline):
    model = Membership
    extra = 0
    raw_id_fields = ('user',)


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'created_at')
    search_fields = ('name',)
    prepopulated_fields = {'slug': ('name',)}
    inlines = [MembershipInline]


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ('name', 'organization', 'subscription_plan', 'custom_role_limit', 'is_active', 'created_at')
    list_filter = ('subscription_plan', 'is_active')
    search_fields = ('name', 'slug', 'organization__name')
    list_editable = ('custom_role_limit',)
    prepopulated_fields = {'slug': ('name',)}


@admin.register(StoreStaff)
class StoreStaffAdmin(admin.ModelAdmin):
    list_display = ('user', 'store', 'role', 'custom_role', 'is_active', 'accepted_at')
    list_filter = ('role', 'is_active')
    search_fields = ('user__email', 'store__name')
    raw_id_fields = ('user', 'invited_by')
