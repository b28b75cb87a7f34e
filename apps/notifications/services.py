import logging

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.utils import timezone

from .models import Notification

logger = logging.getLogger(__name__)

User = get_user_model()


class NotificationService:
    """
    Creates in-app notifications. Delivery problems are logged, they never
    fail the operation that triggered them.
    """

    def notify(self, user, notification_type, title, message, data=None,
               action_url='', action_label=''):
        try:
            with transaction.atomic():
                return Notification.objects.create(
                    user=user,
                    type=notification_type,
                    title=title,
                    message=message,
                    data=data,
                    action_url=action_url,
                    action_label=action_label,
                )
        except DatabaseError:
            logger.exception(f"Failed to create {notification_type} notification for {user}")
            return None

    def notify_many(self, users, notification_type, title, message, data=None,
                    action_url='', action_label=''):
        notifications = [
            Notification(
                user=user,
                type=notification_type,
                title=title,
                message=message,
                data=data,
                action_url=action_url,
                action_label=action_label,
            )
            for user in users
        ]
        if not notifications:
            return []
        try:
            with transaction.atomic():
                return Notification.objects.bulk_create(notifications)
        except DatabaseError:
            logger.exception(f"Failed to create {notification_type} notifications")
            return []

    def notify_super_admins(self, notification_type, title, message, data=None,
                            action_url='', action_label=''):
        return self.notify_many(
            User.objects.super_admins(),
            notification_type,
            title,
            message,
            data=data,
            action_url=action_url,
            action_label=action_label,
        )

    @staticmethod
    def mark_read(notification):
        if not notification.read:
            notification.read = True
            notification.read_at = timezone.now()
            notification.save(update_fields=['read', 'read_at'])
        return notification

    @staticmethod
    def mark_all_read(user):
        return Notification.objects.filter(user=user, read=False).update(read=True, read_at=timezone.now())
