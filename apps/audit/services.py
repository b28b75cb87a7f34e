import logging

from django.db import DatabaseError, transaction

from .models import AuditLog, PlatformActivity

logger = logging.getLogger(__name__)


def get_client_ip(request):
    if request is None:
        return None
    forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def _request_meta(request):
    if request is None:
        return {}
    return {
        'endpoint': request.path[:255],
        'method': request.method,
        'ip_address': get_client_ip(request),
        'user_agent': request.META.get('HTTP_USER_AGENT', ''),
    }


class AuditService:
    """
    Writes audit rows. A failed write is logged and never interrupts the
    caller, so permission checks keep working when the audit table is
    unavailable.
    """

    @classmethod
    def log(cls, action, entity_type, entity_id='', user=None, store_id=None, request=None, **fields):
        if user is not None and not user.is_authenticated:
            user = None
        try:
            with transaction.atomic():
                return AuditLog.objects.create(
                    action=action,
                    entity_type=entity_type,
                    entity_id=str(entity_id or ''),
                    user=user,
                    store_id=store_id,
                    **_request_meta(request),
                    **fields,
                )
        except DatabaseError:
            logger.exception(f"Failed to write audit log {action} for {entity_type}:{entity_id}")
            return None

    @classmethod
    def log_permission_check(cls, user, permission, allowed, role=None, store_id=None, request=None):
        return cls.log(
            action='PERMISSION_CHECK' if allowed else 'PERMISSION_DENIED',
            entity_type='Permission',
            entity_id=permission,
            user=user,
            store_id=store_id,
            request=request,
            permission=permission,
            role=role or '',
            allowed=allowed,
        )


class ActivityService:
    @classmethod
    def log(cls, action, description, actor=None, target_user=None, store=None,
            entity_type='', entity_id='', metadata=None, request=None):
        meta = _request_meta(request)
        try:
            with transaction.atomic():
                return PlatformActivity.objects.create(
                    actor=actor,
                    target_user=target_user,
                    store=store,
                    action=action,
                    entity_type=entity_type,
                    entity_id=str(entity_id or ''),
                    description=description,
                    metadata=metadata,
                    ip_address=meta.get('ip_address'),
                    user_agent=meta.get('user_agent', ''),
                )
        except DatabaseError:
            logger.exception(f"Failed to record platform activity {action}")
            return None
