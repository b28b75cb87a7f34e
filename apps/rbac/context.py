"""
Resolution of a user's effective role.

A user can hold several organization memberships and several store staff
rows. The highest priority membership and staff row win (ties go to the
newest row), and the effective role is SUPER_ADMIN, then the store role,
then the organization role.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from apps.audit.services import AuditService
from apps.stores.models import Membership, Store, StoreStaff
from .catalog import custom_role_has_permission
from .constants import MEMBERSHIP_PRIORITY, STAFF_PRIORITY
from .exceptions import AuthenticationRequired, PermissionDeniedError
from .roles import RolePermissions

logger = logging.getLogger(__name__)


@dataclass
class UserContext:
    user_id: int
    email: str
    name: Optional[str]
    is_super_admin: bool
    organization_role: Optional[str] = None
    organization_id: Optional[int] = None
    store_role: Optional[str] = None
    store_id: Optional[int] = None
    custom_role_id: Optional[int] = None
    permissions: list = field(default_factory=list)
    custom_permissions: list = field(default_factory=list)

    @property
    def effective_role(self):
        if self.is_super_admin:
            return 'SUPER_ADMIN'
        return self.store_role or self.organization_role

    def as_dict(self):
        return {
            'user_id': self.user_id,
            'email': self.email,
            'name': self.name,
            'is_super_admin': self.is_super_admin,
            'effective_role': self.effective_role,
            'organization_role': self.organization_role,
            'organization_id': self.organization_id,
            'store_role': self.store_role,
            'store_id': self.store_id,
            'custom_role_id': self.custom_role_id,
            'permissions': self.permissions,
            'custom_permissions': self.custom_permissions,
        }


def _newest_first(rows):
    return sorted(rows, key=lambda row: row.created_at, reverse=True)


def _pick_membership(user):
    memberships = _newest_first(
        Membership.objects.filter(user=user).select_related('organization')
    )
    # sorted() is stable, so the newest row wins among equal priorities
    memberships.sort(key=lambda m: MEMBERSHIP_PRIORITY.get(m.role, 0), reverse=True)
    return memberships[0] if memberships else None


def _pick_staff(user):
    staff_rows = _newest_first(
        StoreStaff.objects.filter(user=user, is_active=True).select_related('store', 'custom_role')
    )
    staff_rows.sort(key=lambda s: STAFF_PRIORITY.get(s.role, 0), reverse=True)
    return staff_rows[0] if staff_rows else None


def get_user_context(user):
    """
    Builds the UserContext for ``user``. Returns None for anonymous users.
    """
    if user is None or not user.is_authenticated:
        return None

    membership = _pick_membership(user)
    staff = _pick_staff(user)

    context = UserContext(
        user_id=user.pk,
        email=user.email,
        name=user.name,
        is_super_admin=user.is_super_admin,
    )

    if membership:
        context.organization_role = membership.role
        context.organization_id = membership.organization_id

    if staff:
        context.store_role = staff.role
        context.store_id = staff.store_id
        if staff.custom_role_id and staff.custom_role.is_active:
            context.custom_role_id = staff.custom_role_id
            context.custom_permissions = list(staff.custom_role.permissions)
    elif membership:
        store = Store.objects.filter(organization_id=membership.organization_id).only('id').first()
        context.store_id = store.id if store else None

    context.permissions = RolePermissions.get_permissions(context.effective_role)
    return context


def get_store_context(user, store):
    """
    UserContext limited to the roles the user holds in ``store``: the
    membership of its organization and the active staff row of the store.
    """
    if user is None or not user.is_authenticated:
        return None

    context = UserContext(
        user_id=user.pk,
        email=user.email,
        name=user.name,
        is_super_admin=user.is_super_admin,
        store_id=store.pk,
    )

    membership = Membership.objects.filter(user=user, organization_id=store.organization_id).first()
    if membership:
        context.organization_role = membership.role
        context.organization_id = membership.organization_id

    staff = StoreStaff.objects.filter(
        user=user, store=store, is_active=True
    ).select_related('custom_role').first()
    if staff:
        context.store_role = staff.role
        if staff.custom_role_id and staff.custom_role.is_active:
            context.custom_role_id = staff.custom_role_id
            context.custom_permissions = list(staff.custom_role.permissions)

    context.permissions = RolePermissions.get_permissions(context.effective_role)
    return context


def _resolve_permission(context, permission):
    """Returns ``(allowed, role)`` for the role that decided the check."""
    if context.is_super_admin:
        return True, 'SUPER_ADMIN'

    if context.store_role and RolePermissions.has_permission(context.store_role, permission):
        return True, context.store_role

    if context.organization_role and RolePermissions.has_permission(context.organization_role, permission):
        return True, context.organization_role

    if context.custom_permissions and custom_role_has_permission(context.custom_permissions, permission):
        return True, f'CUSTOM:{context.custom_role_id}'

    return False, context.effective_role


def check_permission(user, permission, request=None, context=None, store=None):
    """
    True when the user holds ``permission``. With ``store`` only the roles
    held in that store count. Every check is audited.
    """
    if context is None:
        context = get_store_context(user, store) if store is not None else get_user_context(user)
    if context is None:
        return False

    allowed, role = _resolve_permission(context, permission)
    AuditService.log_permission_check(
        user=user,
        permission=permission,
        allowed=allowed,
        role=role,
        store_id=context.store_id,
        request=request,
    )
    if not allowed:
        logger.info(f"Permission {permission} denied for user {context.email} (role={role})")
    return allowed


def check_any_permission(user, permissions, request=None):
    context = get_user_context(user)
    return any(check_permission(user, permission, request=request, context=context) for permission in permissions)


def require_auth(user):
    context = get_user_context(user)
    if context is None:
        raise AuthenticationRequired('Authentication required')
    return context


def require_permission(user, permission, request=None):
    context = require_auth(user)
    if not check_permission(user, permission, request=request, context=context):
        raise PermissionDeniedError(f'Permission denied: {permission} required')
    return context


def require_any_permission(user, permissions, request=None):
    context = require_auth(user)
    for permission in permissions:
        if check_permission(user, permission, request=request, context=context):
            return context
    raise PermissionDeniedError(f"Permission denied: one of {', '.join(permissions)} required")


def require_super_admin(user):
    context = require_auth(user)
    if not context.is_super_admin:
        raise PermissionDeniedError('Super admin access required')
    return context


def require_role(user, role):
    context = require_auth(user)
    if context.is_super_admin:
        return context
    if role not in (context.store_role, context.organization_role):
        raise PermissionDeniedError(f'Role required: {role}')
    return context


def can_access_store(user, store_id):
    if user is None or not user.is_authenticated:
        return False
    if user.is_super_admin:
        return True
    if StoreStaff.objects.filter(user=user, store_id=store_id, is_active=True).exists():
        return True
    return Membership.objects.filter(user=user, organization__store__id=store_id).exists()


def stores_with_permission(user, permission):
    """Ids of the accessible stores in which the user holds ``permission``."""
    stores = Store.objects.accessible_to(user)
    if user.is_super_admin:
        return list(stores.values_list('id', flat=True))
    return [
        store.pk for store in stores
        if _resolve_permission(get_store_context(user, store), permission)[0]
    ]


def require_store_access(user, store_id):
    context = require_auth(user)
    if not can_access_store(user, store_id):
        raise PermissionDeniedError('Access to this store is not allowed')
    return context


def get_store_role(user, store_id):
    """
    Role name held in a specific store: the staff role or custom role name,
    falling back to the organization role.
    """
    staff = StoreStaff.objects.filter(
        user=user, store_id=store_id, is_active=True
    ).select_related('custom_role').first()
    if staff:
        return staff.role_name

    membership = Membership.objects.filter(user=user, organization__store__id=store_id).first()
    return membership.role if membership else None


def is_store_admin(user, store):
    """Super admin, active STORE_ADMIN staff, or OWNER/ADMIN of the organization."""
    if user is None or not user.is_authenticated:
        return False
    if user.is_super_admin:
        return True
    if StoreStaff.objects.filter(user=user, store=store, role='STORE_ADMIN', is_active=True).exists():
        return True
    return Membership.objects.filter(
        user=user, organization_id=store.organization_id, role__in=['OWNER', 'ADMIN']
    ).exists()


def is_store_owner(user, store):
    if user is None or not user.is_authenticated:
        return False
    return Membership.objects.filter(
        user=user, organization_id=store.organization_id, role='OWNER'
    ).exists()


def is_organization_manager(user, store):
    """OWNER or ADMIN of the organization that owns the store."""
    if user is None or not user.is_authenticated:
        return False
    return Membership.objects.filter(
        user=user, organization_id=store.organization_id, role__in=['OWNER', 'ADMIN']
    ).exists()
