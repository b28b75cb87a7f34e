from django.db import models
from django.conf import settings
from django.utils.text import slugify

from apps.rbac.constants import ORGANIZATION_ROLES, STORE_ROLES


def _role_choices(roles):
    return [(role, role.replace('_', ' ').title()) for role in roles]


class Organization(models.Model):
    name = models.CharField(max_length=225)
    slug = models.SlugField(unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class Membership(models.Model):
    """
    Organization-level role of a user
    """
    ROLE_CHOICES = _role_choices(ORGANIZATION_ROLES)

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='memberships')
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='memberships')
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='MEMBER')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('user', 'organization')
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.email} ({self.role}) at {self.organization.name}"


class StoreQuerySet(models.QuerySet):
    def accessible_to(self, user):
        """Stores the user owns through a membership or works in as active staff"""
        if user.is_super_admin:
            return self
        return self.filter(
            models.Q(organization__memberships__user=user)
            | models.Q(staff__user=user, staff__is_active=True)
        ).distinct()


class Store(models.Model):
    PLAN_CHOICES = [
        ('FREE', 'Free'),
        ('BASIC', 'Basic'),
        ('PRO', 'Pro'),
        ('ENTERPRISE', 'Enterprise'),
    ]

    organization = models.OneToOneField(Organization, on_delete=models.CASCADE, related_name='store')
    name = models.CharField(max_length=225)
    slug = models.SlugField(unique=True)
    email = models.EmailField(blank=True)
    currency = models.CharField(max_length=3, default='USD')
    subscription_plan = models.CharField(max_length=20, choices=PLAN_CHOICES, default='FREE')
    custom_role_limit = models.PositiveIntegerField(default=5)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StoreQuerySet.as_manager()

    class Meta:
        ordering = ['name']
        indexes = [models.Index(fields=['subscription_plan'])]

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name

    @property
    def custom_role_usage(self):
        return self.custom_roles.count()

    @property
    def remaining_custom_roles(self):
        return max(0, self.custom_role_limit - self.custom_role_usage)


class StoreStaff(models.Model):
    """
    Associates users with a store through either a predefined store role
    or an approved custom role
    """
    ROLE_CHOICES = _role_choices(STORE_ROLES)

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='store_staff')
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='staff')
    role = models.CharField(max_length=30, choices=ROLE_CHOICES, null=True, blank=True)
    custom_role = models.ForeignKey(
        'rbac.CustomRole', on_delete=models.SET_NULL, null=True, blank=True, related_name='staff'
    )
    is_active = models.BooleanField(default=True)
    invited_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='staff_invitations'
    )
    invited_at = models.DateTimeField(auto_now_add=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('user', 'store')
        ordering = ['-created_at']
        verbose_name_plural = 'Store staff'
        indexes = [models.Index(fields=['store', 'is_active'])]

    def __str__(self):
        return f"{self.user.email} at {self.store.name}"

    @property
    def role_name(self):
        if self.custom_role_id:
            return self.custom_role.name
        return self.role
