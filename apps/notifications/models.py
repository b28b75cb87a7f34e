from django.db import models
from django.conf import settings


class Notification(models.Model):
    NOTIFICATION_TYPES = [
        ('ROLE_REQUEST_PENDING', 'Role Request Pending'),
        ('ROLE_REQUEST_APPROVED', 'Role Request Approved'),
        ('ROLE_REQUEST_REJECTED', 'Role Request Rejected'),
        ('ROLE_REQUEST_MODIFIED', 'Role Request Modified'),
        ('STAFF_INVITED', 'Staff Invited'),
        ('STAFF_ROLE_CHANGED', 'Staff Role Changed'),
        ('STAFF_REMOVED', 'Staff Removed'),
        ('STAFF_INVITE_ACCEPTED', 'Staff Invite Accepted'),
        ('LOW_STOCK', 'Low Stock'),
        ('ORDER_STATUS_CHANGED', 'Order Status Changed'),
        ('SYSTEM', 'System'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    type = models.CharField(max_length=40, choices=NOTIFICATION_TYPES)
    title = models.CharField(max_length=255)
    message = models.TextField()
    data = models.JSONField(null=True, blank=True)
    read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    action_url = models.CharField(max_length=255, blank=True)
    action_label = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['user', 'read'])]

    def __str__(self):
        return f"{self.type} notification for {self.user}"
