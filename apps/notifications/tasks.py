import logging

from celery import shared_task
from django.contrib.auth import get_user_model
from django.db import transaction

from . import emails

logger = logging.getLogger(__name__)

User = get_user_model()


def _deliver(task, user_id, subject, build_html):
    """
    Sends one transactional email. Provider failures are retried by ``task``
    up to its ``max_retries``.
    """
    try:
        user = User.objects.get(pk=user_id)
    except User.DoesNotExist:
        logger.warning(f"Email '{subject}' skipped, user {user_id} no longer exists")
        return False

    try:
        return emails.send_email(user.email, subject, build_html(user))
    except Exception as e:
        logger.warning(f"Failed to send '{subject}' email to {user.email}, retrying: {e}")
        raise task.retry(exc=e, countdown=60)


@shared_task(bind=True, max_retries=3)
def send_role_approved_email(self, user_id, store_name, role_name):
    return _deliver(
        self,
        user_id,
        f'Custom Role Approved - {role_name}',
        lambda user: emails.role_approved_email(user.display_name, store_name, role_name),
    )


@shared_task(bind=True, max_retries=3)
def send_role_rejected_email(self, user_id, store_name, role_name, reason):
    return _deliver(
        self,
        user_id,
        f'Custom Role Request Update - {role_name}',
        lambda user: emails.role_rejected_email(user.display_name, store_name, role_name, reason),
    )


@shared_task(bind=True, max_retries=3)
def send_staff_invited_email(self, user_id, store_name, role_name):
    return _deliver(
        self,
        user_id,
        f"You're invited to join {store_name}",
        lambda user: emails.staff_invited_email(user.display_name, store_name, role_name),
    )


def queue_email(task, *args):
    """
    Queues ``task`` once the surrounding transaction commits. Broker problems
    are logged and never fail the caller.
    """
    def _send():
        try:
            task.delay(*args)
        except Exception:
            logger.exception(f"Failed to queue {task.name}")

    transaction.on_commit(_send)
