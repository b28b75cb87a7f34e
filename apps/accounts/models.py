from django.contrib.auth.models import AbstractBaseUser
from django.db import models
from .managers import CustomUserManager


class CustomUser(AbstractBaseUser):
    ACCOUNT_STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('APPROVED', 'Approved'),
        ('REJECTED', 'Rejected'),
        ('SUSPENDED', 'Suspended'),
    ]

    email = models.EmailField(unique=True)
    name = models.CharField(max_length=225, null=True, blank=True)
    phone_number = models.CharField(max_length=15, null=True, blank=True)
    is_super_admin = models.BooleanField(default=False)
    account_status = models.CharField(
        max_length=20, choices=ACCOUNT_STATUS_CHOICES, default='PENDING'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    is_superuser = models.BooleanField(default=False)
    date_joined = models.DateTimeField(auto_now_add=True)

    USERNAME_FIELD = 'email'

    objects = CustomUserManager()

    class Meta:
        ordering = ['-date_joined']
        indexes = [models.Index(fields=['account_status'])]

    def __str__(self):
        return self.email

    def has_perm(self, perm, obj=None):
        "Returns True if the user has the specified permission"
        return self.is_superuser

    def has_module_perms(self, app_label):
        "Returns True if the user has permissions to view the app `app_label`"
        return self.is_superuser

    @property
    def display_name(self):
        return self.name or self.email

    @property
    def is_approved(self):
        return self.account_status == 'APPROVED'
