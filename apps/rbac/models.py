from django.conf import settings
from django.core.cache import cache
from django.db import models

from .constants import (
    REQUEST_STATUSES,
    REQUEST_STATUS_PENDING,
    OPEN_REQUEST_STATUSES,
    CUSTOM_ROLE_ACTIVITY_ACTIONS,
    DEFAULT_PLAN_LIMITS,
)


class CustomRole(models.Model):
    """
    Store-specific role created from an approved request
    """
    store = models.ForeignKey('stores.Store', on_delete=models.CASCADE, related_name='custom_roles')
    name = models.CharField(max_length=50)
    description = models.TextField(blank=True)
    permissions = models.JSONField(default=list)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='created_custom_roles'
    )
    last_modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='modified_custom_roles'
    )
    last_modified_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='approved_custom_roles'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('store', 'name')
        ordering = ['name']
        indexes = [models.Index(fields=['store', 'is_active'])]

    def __str__(self):
        return f"{self.name} ({self.store.name})"

    def has_permission(self, permission):
        from .catalog import custom_role_has_permission
        return custom_role_has_permission(self.permissions, permission)


class CustomRoleRequestQuerySet(models.QuerySet):
    def open(self):
        return self.filter(status__in=OPEN_REQUEST_STATUSES)


class CustomRoleRequest(models.Model):
    """
    A store admin's request for a new custom role, reviewed by a super admin
    """
    STATUS_CHOICES = [(status, status.replace('_', ' ').title()) for status in REQUEST_STATUSES]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='role_requests')
    store = models.ForeignKey('stores.Store', on_delete=models.CASCADE, related_name='role_requests')
    role_name = models.CharField(max_length=50)
    role_description = models.TextField(blank=True)
    permissions = models.JSONField(default=list)
    justification = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=REQUEST_STATUS_PENDING)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='reviewed_role_requests'
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)
    admin_notes = models.TextField(blank=True)
    modified_permissions = models.JSONField(null=True, blank=True)
    custom_role = models.OneToOneField(
        CustomRole, on_delete=models.SET_NULL, null=True, blank=True, related_name='request'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomRoleRequestQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['store', 'status']),
            models.Index(fields=['status', 'created_at']),
        ]

    def __str__(self):
        return f"{self.role_name} for {self.store.name} ({self.status})"

    @property
    def is_open(self):
        return self.status in OPEN_REQUEST_STATUSES


class CustomRoleActivity(models.Model):
    """
    History of changes made to custom roles after approval
    """
    ACTION_CHOICES = [(action, action.replace('_', ' ').title()) for action in CUSTOM_ROLE_ACTIVITY_ACTIONS]

    action = models.CharField(max_length=30, choices=ACTION_CHOICES)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='custom_role_activities'
    )
    custom_role = models.ForeignKey(
        CustomRole, on_delete=models.SET_NULL, null=True, blank=True, related_name='activities'
    )
    store = models.ForeignKey('stores.Store', on_delete=models.CASCADE, related_name='custom_role_activities')
    role_name = models.CharField(max_length=50)
    details = models.JSONField(null=True, blank=True)
    previous_value = models.JSONField(null=True, blank=True)
    new_value = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = 'Custom role activities'
        indexes = [models.Index(fields=['store', 'created_at'])]

    def __str__(self):
        return f"{self.action} on {self.role_name}"


class PlatformSettings(models.Model):
    """
    Singleton row holding platform-wide custom role limits
    """
    SINGLETON_ID = 'global'
    CACHE_KEY = 'rbac:platform-settings'

    id = models.CharField(max_length=20, primary_key=True, default=SINGLETON_ID, editable=False)
    default_custom_role_limit = models.PositiveIntegerField(default=5)
    max_custom_role_limit = models.PositiveIntegerField(default=20)
    custom_role_limits_by_plan = models.JSONField(default=dict)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Platform settings'
        verbose_name_plural = 'Platform settings'

    def __str__(self):
        return 'Platform settings'

    def save(self, *args, **kwargs):
        self.id = self.SINGLETON_ID
        super().save(*args, **kwargs)
        cache.delete(self.CACHE_KEY)

    @classmethod
    def load(cls):
        instance = cache.get(cls.CACHE_KEY)
        if instance is None:
            instance, _ = cls.objects.get_or_create(
                id=cls.SINGLETON_ID,
                defaults={
                    'default_custom_role_limit': settings.RBAC_SETTINGS['DEFAULT_CUSTOM_ROLE_LIMIT'],
                    'custom_role_limits_by_plan': dict(DEFAULT_PLAN_LIMITS),
                },
            )
            cache.set(cls.CACHE_KEY, instance, settings.RBAC_SETTINGS['PLATFORM_SETTINGS_CACHE_TIMEOUT'])
        return instance

    def limit_for_plan(self, plan):
        limits = self.custom_role_limits_by_plan or DEFAULT_PLAN_LIMITS
        return limits.get(plan, self.default_custom_role_limit)
