import json
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.audit.services import ActivityService
from apps.notifications.services import NotificationService
from apps.notifications import tasks as email_tasks
from apps.stores.models import Store
from .catalog import validate_permissions, is_permission_allowed
from .constants import (
    OPEN_REQUEST_STATUSES,
    REQUEST_STATUS_APPROVED,
    REQUEST_STATUS_CANCELLED,
    REQUEST_STATUS_INFO_REQUESTED,
    REQUEST_STATUS_PENDING,
    REQUEST_STATUS_REJECTED,
    SUBSCRIPTION_PLANS,
)
from .exceptions import ConflictError, LimitExceededError, NotFoundError, RoleRequestError
from .models import CustomRole, CustomRoleActivity, CustomRoleRequest, PlatformSettings

logger = logging.getLogger(__name__)


def _ensure_valid_permissions(permissions, message='Invalid permissions'):
    valid, errors, invalid = validate_permissions(permissions)
    if not valid:
        raise RoleRequestError(message, extra={'details': errors, 'invalid_permissions': invalid})


def log_custom_role_activity(action, actor, store, role_name, custom_role=None,
                             details=None, previous_value=None, new_value=None):
    return CustomRoleActivity.objects.create(
        action=action,
        actor=actor,
        store=store,
        custom_role=custom_role,
        role_name=role_name,
        details=details,
        previous_value=previous_value,
        new_value=new_value,
    )


class RoleRequestService:
    """
    Custom role request lifecycle.

    PENDING and INFO_REQUESTED requests are open: the store side can edit or
    cancel them and a super admin can approve, reject or ask for changes.
    APPROVED, REJECTED and CANCELLED are final.
    """

    def __init__(self, actor, request=None):
        self.actor = actor
        self.request = request
        self.notifications = NotificationService()

    # Store side

    def _ensure_name_available(self, store, role_name, exclude_request=None):
        if CustomRole.objects.filter(store=store, name=role_name).exists():
            raise RoleRequestError('A custom role with this name already exists')

        open_requests = CustomRoleRequest.objects.open().filter(store=store, role_name=role_name)
        if exclude_request is not None:
            open_requests = open_requests.exclude(pk=exclude_request.pk)
        if open_requests.exists():
            raise RoleRequestError('A pending request for this role name already exists')

    def _ensure_below_limit(self, store):
        if store.custom_role_usage >= store.custom_role_limit:
            raise RoleRequestError(
                f'Custom role limit reached ({store.custom_role_limit}). '
                'Delete unused roles or ask a platform admin to raise the limit.',
                extra={'limit': store.custom_role_limit, 'used': store.custom_role_usage},
            )

    @transaction.atomic
    def submit(self, store, role_name, permissions, role_description='', justification=''):
        _ensure_valid_permissions(permissions)
        self._ensure_name_available(store, role_name)

        max_pending = settings.RBAC_SETTINGS['MAX_PENDING_REQUESTS']
        if CustomRoleRequest.objects.open().filter(store=store).count() >= max_pending:
            raise LimitExceededError(
                f'Maximum pending role requests reached ({max_pending}). '
                'Please wait for existing requests to be processed.'
            )

        self._ensure_below_limit(store)

        role_request = CustomRoleRequest.objects.create(
            user=self.actor,
            store=store,
            role_name=role_name,
            role_description=role_description or '',
            permissions=permissions,
            justification=justification or '',
            status=REQUEST_STATUS_PENDING,
        )

        self.notifications.notify_super_admins(
            'ROLE_REQUEST_PENDING',
            'New Custom Role Request',
            f'{self.actor.display_name} from "{store.name}" has requested a new custom role: "{role_name}"',
            data={'request_id': role_request.pk, 'store_id': store.pk, 'role_name': role_name},
            action_url='/admin/roles/requests',
            action_label='Review Request',
        )
        ActivityService.log(
            'ROLE_REQUEST_CREATED',
            f'Requested custom role "{role_name}" for "{store.name}"',
            actor=self.actor,
            store=store,
            entity_type='CustomRoleRequest',
            entity_id=role_request.pk,
            metadata={'permissions': permissions},
            request=self.request,
        )
        logger.info(f"Role request {role_request.pk} ({role_name}) submitted for store {store.pk}")
        return role_request

    @transaction.atomic
    def update(self, role_request, **changes):
        if not role_request.is_open:
            raise RoleRequestError('Cannot update request in current status')

        permissions = changes.get('permissions')
        if permissions is not None:
            _ensure_valid_permissions(permissions)
            role_request.permissions = permissions

        role_name = changes.get('role_name')
        if role_name and role_name != role_request.role_name:
            self._ensure_name_available(role_request.store, role_name, exclude_request=role_request)
            role_request.role_name = role_name

        for field in ('role_description', 'justification'):
            if changes.get(field) is not None:
                setattr(role_request, field, changes[field])

        if role_request.status == REQUEST_STATUS_INFO_REQUESTED:
            role_request.status = REQUEST_STATUS_PENDING

        role_request.save()
        return role_request

    @transaction.atomic
    def cancel(self, role_request):
        if not role_request.is_open:
            raise RoleRequestError('Cannot cancel request in current status')

        role_request.status = REQUEST_STATUS_CANCELLED
        role_request.save(update_fields=['status', 'updated_at'])

        ActivityService.log(
            'ROLE_REQUEST_CANCELLED',
            f'Cancelled custom role request "{role_request.role_name}"',
            actor=self.actor,
            store=role_request.store,
            entity_type='CustomRoleRequest',
            entity_id=role_request.pk,
            request=self.request,
        )
        return role_request

    # Super admin side

    def _ensure_reviewable(self, role_request, message='Request is not pending approval'):
        if role_request.status not in OPEN_REQUEST_STATUSES:
            raise RoleRequestError(message)

    @transaction.atomic
    def approve(self, role_request, modified_permissions=None, notes=''):
        # The request and store rows stay locked until the role exists, so
        # concurrent approvals see the new status and the new usage count
        role_request = CustomRoleRequest.objects.select_for_update().select_related('user').get(pk=role_request.pk)
        store = Store.objects.select_for_update().get(pk=role_request.store_id)
        role_request.store = store
        self._ensure_reviewable(role_request)

        final_permissions = modified_permissions if modified_permissions else role_request.permissions
        _ensure_valid_permissions(final_permissions)

        if CustomRole.objects.filter(store=store, name=role_request.role_name).exists():
            raise RoleRequestError('A role with this name already exists in the store')
        self._ensure_below_limit(store)

        now = timezone.now()
        custom_role = CustomRole.objects.create(
            store=store,
            name=role_request.role_name,
            description=role_request.role_description,
            permissions=final_permissions,
            is_active=True,
            created_by=role_request.user,
            approved_by=self.actor,
            approved_at=now,
        )
        role_request.status = REQUEST_STATUS_APPROVED
        role_request.reviewed_by = self.actor
        role_request.reviewed_at = now
        role_request.admin_notes = notes or ''
        role_request.modified_permissions = modified_permissions or None
        role_request.custom_role = custom_role
        role_request.save()

        log_custom_role_activity(
            'ROLE_CREATED', self.actor, store, custom_role.name,
            custom_role=custom_role,
            details={'request_id': role_request.pk},
            new_value=final_permissions,
        )

        was_modified = bool(modified_permissions) and sorted(modified_permissions) != sorted(role_request.permissions)

        if was_modified:
            self.notifications.notify(
                role_request.user,
                'ROLE_REQUEST_MODIFIED',
                'Custom Role Approved with Modifications',
                f'Your custom role "{role_request.role_name}" has been approved with some modifications '
                'to the permissions. You can now assign this role to staff members.',
                data=self._approval_data(custom_role, role_request, was_modified),
                action_url=f'/dashboard/stores/{store.pk}/staff',
                action_label='Manage Staff',
            )
        else:
            self.notifications.notify(
                role_request.user,
                'ROLE_REQUEST_APPROVED',
                'Custom Role Request Approved',
                f'Your custom role "{role_request.role_name}" has been approved! '
                'You can now assign this role to staff members.',
                data=self._approval_data(custom_role, role_request, was_modified),
                action_url=f'/dashboard/stores/{store.pk}/staff',
                action_label='Manage Staff',
            )

        suffix = ' (with modifications)' if was_modified else ''
        ActivityService.log(
            'ROLE_REQUEST_APPROVED',
            f'Approved custom role "{role_request.role_name}" for "{store.name}"{suffix}',
            actor=self.actor,
            target_user=role_request.user,
            store=store,
            entity_type='CustomRole',
            entity_id=custom_role.pk,
            metadata={
                'request_id': role_request.pk,
                'was_modified': was_modified,
                'final_permissions': final_permissions,
            },
            request=self.request,
        )
        email_tasks.queue_email(
            email_tasks.send_role_approved_email, role_request.user_id, store.name, role_request.role_name,
        )
        logger.info(f"Role request {role_request.pk} approved by {self.actor.email}")
        return custom_role, was_modified

    @staticmethod
    def _approval_data(custom_role, role_request, was_modified):
        return {
            'custom_role_id': custom_role.pk,
            'role_name': role_request.role_name,
            'store_id': role_request.store_id,
            'was_modified': was_modified,
        }

    @transaction.atomic
    def reject(self, role_request, reason, notes=''):
        self._ensure_reviewable(role_request, 'Request is not pending')

        role_request.status = REQUEST_STATUS_REJECTED
        role_request.reviewed_by = self.actor
        role_request.reviewed_at = timezone.now()
        role_request.rejection_reason = reason
        role_request.admin_notes = notes or ''
        role_request.save()

        self.notifications.notify(
            role_request.user,
            'ROLE_REQUEST_REJECTED',
            'Custom Role Request Rejected',
            f'Your custom role request "{role_request.role_name}" has been rejected. Reason: {reason}',
            data={'request_id': role_request.pk, 'role_name': role_request.role_name, 'reason': reason},
            action_url=f'/dashboard/stores/{role_request.store_id}/roles',
            action_label='View Requests',
        )
        ActivityService.log(
            'ROLE_REQUEST_REJECTED',
            f'Rejected custom role request "{role_request.role_name}" for "{role_request.store.name}"',
            actor=self.actor,
            target_user=role_request.user,
            store=role_request.store,
            entity_type='CustomRoleRequest',
            entity_id=role_request.pk,
            metadata={'reason': reason},
            request=self.request,
        )
        email_tasks.queue_email(
            email_tasks.send_role_rejected_email,
            role_request.user_id, role_request.store.name, role_request.role_name, reason,
        )
        return role_request

    @transaction.atomic
    def request_modification(self, role_request, message, suggested_permissions=None, notes=''):
        if suggested_permissions:
            invalid = [p for p in suggested_permissions if not is_permission_allowed(p)]
            if invalid:
                raise RoleRequestError(
                    'Invalid permissions in suggestion',
                    extra={'invalid_permissions': invalid},
                )

        self._ensure_reviewable(role_request, 'Request is not in a modifiable state')

        role_request.status = REQUEST_STATUS_INFO_REQUESTED
        role_request.reviewed_by = self.actor
        role_request.reviewed_at = timezone.now()
        if suggested_permissions:
            role_request.admin_notes = json.dumps({
                'message': message,
                'suggestedPermissions': suggested_permissions,
                'additionalNotes': notes or None,
            })
        else:
            role_request.admin_notes = notes or message
        role_request.save()

        self.notifications.notify(
            role_request.user,
            'ROLE_REQUEST_MODIFIED',
            'Changes Requested for Custom Role',
            f'Changes have been requested for your custom role "{role_request.role_name}". {message[:100]}...',
            data={
                'request_id': role_request.pk,
                'message': message,
                'suggested_permissions': suggested_permissions or [],
            },
            action_url=f'/dashboard/stores/{role_request.store_id}/roles',
            action_label='Update Request',
        )
        ActivityService.log(
            'ROLE_REQUEST_MODIFICATION_REQUESTED',
            f'Requested modifications to role request "{role_request.role_name}" for "{role_request.store.name}"',
            actor=self.actor,
            target_user=role_request.user,
            store=role_request.store,
            entity_type='CustomRoleRequest',
            entity_id=role_request.pk,
            metadata={'message': message[:200], 'suggested_permissions': suggested_permissions or []},
            request=self.request,
        )
        return role_request


class CustomRoleService:
    """
    Changes to approved custom roles by the store owner, and the
    platform-level limits managed by super admins.
    """

    def __init__(self, actor, request=None):
        self.actor = actor
        self.request = request

    @transaction.atomic
    def update_role(self, custom_role, name=None, description=None, permissions=None, is_active=None):
        """
        Returns ``(custom_role, changes)``. ``changes`` is empty when the
        payload matches the stored role.
        """
        changes = {}
        previous = {}
        action = 'ROLE_UPDATED'

        if name is not None:
            name = name.strip()
            if not name:
                raise RoleRequestError('Role name cannot be empty')
            if name != custom_role.name:
                duplicate = CustomRole.objects.filter(
                    store=custom_role.store, name=name
                ).exclude(pk=custom_role.pk)
                if duplicate.exists():
                    raise ConflictError(f'A role named "{name}" already exists')
                previous['name'] = custom_role.name
                changes['name'] = name
                custom_role.name = name

        if description is not None and description != custom_role.description:
            previous['description'] = custom_role.description
            changes['description'] = description
            custom_role.description = description

        if permissions is not None:
            if not permissions:
                raise RoleRequestError('At least one permission is required')
            _ensure_valid_permissions(permissions)
            if sorted(permissions) != sorted(custom_role.permissions):
                previous['permissions'] = custom_role.permissions
                changes['permissions'] = permissions
                custom_role.permissions = permissions
                action = 'PERMISSIONS_CHANGED'

        if is_active is not None and is_active != custom_role.is_active:
            previous['is_active'] = custom_role.is_active
            changes['is_active'] = is_active
            custom_role.is_active = is_active
            action = 'ROLE_REACTIVATED' if is_active else 'ROLE_DEACTIVATED'

        if not changes:
            return custom_role, changes

        custom_role.last_modified_by = self.actor
        custom_role.last_modified_at = timezone.now()
        custom_role.save()

        log_custom_role_activity(
            action, self.actor, custom_role.store, custom_role.name,
            custom_role=custom_role,
            details={'changes': sorted(changes)},
            previous_value=previous,
            new_value=changes,
        )
        return custom_role, changes

    @transaction.atomic
    def delete_role(self, custom_role, force=False):
        store = custom_role.store
        assigned = custom_role.staff.all()
        staff_count = assigned.count()

        if staff_count and not force:
            raise RoleRequestError(
                'Role is currently assigned to staff members',
                extra={
                    'staff_count': staff_count,
                    'message': 'Remove role from staff members first, or use ?force=true to unassign automatically',
                },
            )

        if staff_count:
            staff_ids = list(assigned.values_list('pk', flat=True))
            assigned.update(custom_role=None)
            log_custom_role_activity(
                'ROLE_UNASSIGNED', self.actor, store, custom_role.name,
                custom_role=custom_role,
                details={'staff_ids': staff_ids, 'staff_count': staff_count},
            )

        role_name = custom_role.name
        permissions = custom_role.permissions
        custom_role.delete()

        log_custom_role_activity(
            'ROLE_DELETED', self.actor, store, role_name,
            previous_value={'name': role_name, 'permissions': permissions},
            details={'unassigned_staff': staff_count},
        )
        logger.info(f"Custom role {role_name} deleted from store {store.pk} by {self.actor.email}")
        return staff_count

    @transaction.atomic
    def set_store_limit(self, store, limit):
        platform = PlatformSettings.load()
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 0:
            raise RoleRequestError('Invalid limit value')
        if limit > platform.max_custom_role_limit:
            raise RoleRequestError(
                'Limit exceeds platform maximum',
                extra={'message': f'The maximum allowed custom role limit is {platform.max_custom_role_limit}.'},
            )
        usage = store.custom_role_usage
        if limit < usage:
            raise RoleRequestError(
                'Limit below current usage',
                extra={'message': f'Cannot set limit to {limit}. Store currently has {usage} custom roles. '
                                  'Please delete some roles first.'},
            )

        previous_limit = store.custom_role_limit
        store.custom_role_limit = limit
        store.save(update_fields=['custom_role_limit', 'updated_at'])

        log_custom_role_activity(
            'LIMIT_CHANGED', self.actor, store, '',
            details={'store_name': store.name},
            previous_value=previous_limit,
            new_value=limit,
        )
        ActivityService.log(
            'CUSTOM_ROLE_LIMIT_CHANGED',
            f'Changed custom role limit for "{store.name}" from {previous_limit} to {limit}',
            actor=self.actor,
            store=store,
            entity_type='Store',
            entity_id=store.pk,
            metadata={'previous_limit': previous_limit, 'new_limit': limit},
            request=self.request,
        )
        return previous_limit

    def bulk_update_limits(self, apply_plan_defaults=False, store_ids=None, limit=None):
        """
        Either resets every store to its plan default or applies ``limit`` to
        ``store_ids``. Returns a list of per-store result dicts.
        """
        platform = PlatformSettings.load()
        max_allowed = platform.max_custom_role_limit
        results = []

        if apply_plan_defaults:
            for store in Store.objects.all():
                target = min(platform.limit_for_plan(store.subscription_plan), max_allowed)
                results.append(self._apply_bulk_limit(store, target))
            return results

        if store_ids and limit is not None:
            if not isinstance(limit, int) or isinstance(limit, bool) or limit < 0 or limit > max_allowed:
                raise RoleRequestError(
                    'Invalid limit value',
                    extra={'message': f'Limit must be between 0 and {max_allowed}'},
                )
            for store in Store.objects.filter(pk__in=store_ids):
                results.append(self._apply_bulk_limit(store, limit))
            return results

        raise RoleRequestError(
            'Invalid request',
            extra={'message': 'Provide either apply_plan_defaults=true or store_ids[] and limit'},
        )

    def _apply_bulk_limit(self, store, target):
        previous_limit = store.custom_role_limit
        result = {
            'store_id': store.pk,
            'store_name': store.name,
            'previous_limit': previous_limit,
            'new_limit': previous_limit,
            'success': True,
        }
        if target == previous_limit:
            result['skipped'] = True
            return result

        usage = store.custom_role_usage
        if target < usage:
            result['success'] = False
            result['error'] = f'Cannot reduce limit below current usage ({usage} roles)'
            return result

        with transaction.atomic():
            store.custom_role_limit = target
            store.save(update_fields=['custom_role_limit', 'updated_at'])
            log_custom_role_activity(
                'LIMIT_CHANGED', self.actor, store, '',
                details={'store_name': store.name, 'bulk': True},
                previous_value=previous_limit,
                new_value=target,
            )
        result['new_limit'] = target
        return result

    @transaction.atomic
    def update_platform_settings(self, default_custom_role_limit=None, max_custom_role_limit=None,
                                 custom_role_limits_by_plan=None):
        platform = PlatformSettings.load()

        if default_custom_role_limit is not None:
            if not isinstance(default_custom_role_limit, int) or default_custom_role_limit < 0:
                raise RoleRequestError('Invalid default custom role limit')
            platform.default_custom_role_limit = default_custom_role_limit

        if max_custom_role_limit is not None:
            if not isinstance(max_custom_role_limit, int) or max_custom_role_limit < 1:
                raise RoleRequestError('Invalid max custom role limit')
            platform.max_custom_role_limit = max_custom_role_limit

        if custom_role_limits_by_plan is not None:
            if not isinstance(custom_role_limits_by_plan, dict):
                raise RoleRequestError('Invalid custom role limits by plan')
            for plan, plan_limit in custom_role_limits_by_plan.items():
                if plan not in SUBSCRIPTION_PLANS:
                    raise RoleRequestError(f'Invalid plan: {plan}')
                if not isinstance(plan_limit, int) or plan_limit < 0:
                    raise RoleRequestError(f'Invalid limit for plan {plan}')
            platform.custom_role_limits_by_plan = custom_role_limits_by_plan

        if platform.default_custom_role_limit > platform.max_custom_role_limit:
            raise RoleRequestError('Default limit cannot exceed maximum limit')

        platform.updated_by = self.actor
        platform.save()

        ActivityService.log(
            'PLATFORM_SETTINGS_UPDATED',
            'Updated custom role platform settings',
            actor=self.actor,
            entity_type='PlatformSettings',
            entity_id=platform.pk,
            metadata={
                'default_custom_role_limit': platform.default_custom_role_limit,
                'max_custom_role_limit': platform.max_custom_role_limit,
                'custom_role_limits_by_plan': platform.custom_role_limits_by_plan,
            },
            request=self.request,
        )
        return platform


def get_role_request_or_404(queryset, **lookup):
    try:
        return queryset.select_related('store', 'user').get(**lookup)
    except (CustomRoleRequest.DoesNotExist, ValueError):
        raise NotFoundError('Role request not found')
