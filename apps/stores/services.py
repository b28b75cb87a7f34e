import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from apps.audit.services import ActivityService
from apps.notifications import tasks as email_tasks
from apps.notifications.services import NotificationService
from apps.rbac.exceptions import NotFoundError, RoleRequestError
from apps.rbac.models import CustomRole
from apps.rbac.services import log_custom_role_activity
from .models import Membership, StoreStaff

logger = logging.getLogger(__name__)

User = get_user_model()


class StaffService:
    """
    Invites, updates and removes store staff. A staff row carries either a
    predefined store role or an active custom role of the same store.
    """

    def __init__(self, actor, request=None):
        self.actor = actor
        self.request = request
        self.notifications = NotificationService()

    def _get_custom_role(self, store, custom_role_id):
        try:
            return CustomRole.objects.get(pk=custom_role_id, store=store, is_active=True)
        except (CustomRole.DoesNotExist, ValueError):
            raise NotFoundError('Custom role not found or inactive')

    @transaction.atomic
    def invite(self, store, email, role=None, custom_role_id=None):
        if not role and not custom_role_id:
            raise RoleRequestError('Either role or custom_role_id must be provided')
        if role and custom_role_id:
            raise RoleRequestError('Cannot specify both role and custom_role_id')

        try:
            user = User.objects.get(email__iexact=email.strip())
        except User.DoesNotExist:
            raise NotFoundError('User not found. They must have an account first.')

        if not user.is_approved:
            raise RoleRequestError('User account is not approved')

        custom_role = self._get_custom_role(store, custom_role_id) if custom_role_id else None

        staff = StoreStaff.objects.filter(user=user, store=store).first()
        reinvited = False
        if staff is not None:
            if staff.is_active:
                raise RoleRequestError('User is already a staff member of this store')
            staff.role = role or None
            staff.custom_role = custom_role
            staff.is_active = True
            staff.invited_by = self.actor
            staff.invited_at = timezone.now()
            staff.accepted_at = None
            staff.save()
            reinvited = True
        else:
            staff = StoreStaff.objects.create(
                user=user,
                store=store,
                role=role or None,
                custom_role=custom_role,
                invited_by=self.actor,
            )

        role_name = staff.role_name or 'staff'
        if custom_role is not None:
            log_custom_role_activity(
                'ROLE_ASSIGNED', self.actor, store, custom_role.name,
                custom_role=custom_role,
                details={'staff_id': staff.pk, 'user_id': user.pk},
            )

        if reinvited:
            message = f'You have been re-invited to join "{store.name}" as {role_name}.'
        else:
            message = f'You have been invited to join "{store.name}" as {role_name}.'
        self.notifications.notify(
            user,
            'STAFF_INVITED',
            'Staff Invitation',
            message,
            data={'store_id': store.pk, 'staff_id': staff.pk, 'role': role_name},
            action_url=f'/dashboard/stores/{store.pk}',
            action_label='View Store',
        )
        ActivityService.log(
            'STAFF_INVITED',
            f'Invited {user.email} to "{store.name}" as {role_name}',
            actor=self.actor,
            target_user=user,
            store=store,
            entity_type='StoreStaff',
            entity_id=staff.pk,
            metadata={'role': staff.role, 'custom_role_id': staff.custom_role_id, 'reinvited': reinvited},
            request=self.request,
        )
        email_tasks.queue_email(email_tasks.send_staff_invited_email, user.pk, store.name, role_name)
        logger.info(f"{user.email} invited to store {store.pk} as {role_name}")
        return staff, reinvited

    @transaction.atomic
    def update(self, staff, role=None, custom_role_id=None, is_active=None):
        if role and custom_role_id:
            raise RoleRequestError('Cannot specify both role and custom_role_id')

        store = staff.store
        previous_custom_role = staff.custom_role
        changes = {}

        if role:
            staff.role = role
            staff.custom_role = None
            changes['role'] = role
        elif custom_role_id:
            custom_role = self._get_custom_role(store, custom_role_id)
            staff.custom_role = custom_role
            staff.role = None
            changes['custom_role_id'] = custom_role.pk

        if is_active is not None and is_active != staff.is_active:
            staff.is_active = is_active
            changes['is_active'] = is_active

        if not changes:
            return staff, changes

        staff.save()

        if previous_custom_role is not None and previous_custom_role.pk != staff.custom_role_id:
            log_custom_role_activity(
                'ROLE_UNASSIGNED', self.actor, store, previous_custom_role.name,
                custom_role=previous_custom_role,
                details={'staff_id': staff.pk, 'user_id': staff.user_id},
            )
        if staff.custom_role_id and 'custom_role_id' in changes:
            log_custom_role_activity(
                'ROLE_ASSIGNED', self.actor, store, staff.custom_role.name,
                custom_role=staff.custom_role,
                details={'staff_id': staff.pk, 'user_id': staff.user_id},
            )

        if 'role' in changes or 'custom_role_id' in changes:
            self.notifications.notify(
                staff.user,
                'STAFF_ROLE_CHANGED',
                'Role Updated',
                f'Your role has been updated to {staff.role_name}.',
                data={'store_id': store.pk, 'staff_id': staff.pk, 'role': staff.role_name},
            )
        if changes.get('is_active') is False:
            self.notifications.notify(
                staff.user,
                'STAFF_ROLE_CHANGED',
                'Account Deactivated',
                f'Your staff access to "{store.name}" has been deactivated.',
                data={'store_id': store.pk, 'staff_id': staff.pk},
            )

        ActivityService.log(
            'STAFF_UPDATED',
            f'Updated staff member {staff.user.email} in "{store.name}"',
            actor=self.actor,
            target_user=staff.user,
            store=store,
            entity_type='StoreStaff',
            entity_id=staff.pk,
            metadata=changes,
            request=self.request,
        )
        return staff, changes

    @transaction.atomic
    def remove(self, staff):
        """Deactivates the staff row and unassigns its custom role."""
        store = staff.store
        custom_role = staff.custom_role

        staff.is_active = False
        staff.custom_role = None
        staff.save(update_fields=['is_active', 'custom_role', 'updated_at'])

        if custom_role is not None:
            log_custom_role_activity(
                'ROLE_UNASSIGNED', self.actor, store, custom_role.name,
                custom_role=custom_role,
                details={'staff_id': staff.pk, 'user_id': staff.user_id},
            )

        self.notifications.notify(
            staff.user,
            'STAFF_REMOVED',
            'Removed from Store',
            f'You have been removed from "{store.name}".',
            data={'store_id': store.pk},
        )
        ActivityService.log(
            'STAFF_REMOVED',
            f'Removed {staff.user.email} from "{store.name}"',
            actor=self.actor,
            target_user=staff.user,
            store=store,
            entity_type='StoreStaff',
            entity_id=staff.pk,
            request=self.request,
        )
        return staff

    def _pending_invitation(self, store):
        staff = StoreStaff.objects.filter(
            user=self.actor, store=store, is_active=True, accepted_at__isnull=True
        ).first()
        if staff is None:
            raise NotFoundError('No pending invitation found')
        return staff

    @transaction.atomic
    def accept_invite(self, store):
        staff = self._pending_invitation(store)
        staff.accepted_at = timezone.now()
        staff.save(update_fields=['accepted_at', 'updated_at'])

        owners = [
            membership.user
            for membership in Membership.objects.filter(
                organization_id=store.organization_id, role='OWNER'
            ).select_related('user')
        ]
        self.notifications.notify_many(
            owners,
            'STAFF_INVITE_ACCEPTED',
            'Invitation Accepted',
            f'{self.actor.display_name} accepted the invitation to join "{store.name}".',
            data={'store_id': store.pk, 'staff_id': staff.pk},
            action_url=f'/dashboard/stores/{store.pk}/staff',
            action_label='Manage Staff',
        )
        ActivityService.log(
            'STAFF_JOINED',
            f'{self.actor.email} joined "{store.name}"',
            actor=self.actor,
            store=store,
            entity_type='StoreStaff',
            entity_id=staff.pk,
            request=self.request,
        )
        return staff

    @transaction.atomic
    def decline_invite(self, store):
        staff = self._pending_invitation(store)
        staff_id = staff.pk
        staff.delete()

        ActivityService.log(
            'STAFF_DECLINED',
            f'{self.actor.email} declined the invitation to "{store.name}"',
            actor=self.actor,
            store=store,
            entity_type='StoreStaff',
            entity_id=staff_id,
            request=self.request,
        )
