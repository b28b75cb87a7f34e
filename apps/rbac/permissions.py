from functools import wraps

from django.http import Http404
from rest_framework import permissions

from apps.stores.models import Store
from .context import (
    check_permission,
    can_access_store,
    is_store_admin,
    is_store_owner,
    is_organization_manager,
)
from .exceptions import AuthenticationRequired, NotFoundError, PermissionDeniedError


def get_store_for_view(view, url_kwarg='store_id'):
    """
    Loads the store named in the URL once per request and caches it on the view.
    """
    if not hasattr(view, '_store'):
        store_id = view.kwargs.get(url_kwarg)
        if store_id is None:
            view._store = None
        else:
            try:
                view._store = Store.objects.select_related('organization').get(pk=store_id)
            except (Store.DoesNotExist, ValueError):
                raise Http404("Store not found")
    return view._store


class IsSuperAdmin(permissions.BasePermission):
    message = 'Super admin access required'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_super_admin)


class IsStoreMember(permissions.BasePermission):
    """
    Super admins, active staff of the store, or members of its organization
    """
    message = 'Access to this store is not allowed'

    def has_permission(self, request, view):
        store = get_store_for_view(view)
        return store is not None and can_access_store(request.user, store.pk)


class IsStoreAdmin(permissions.BasePermission):
    message = 'Store admin access required'

    def has_permission(self, request, view):
        store = get_store_for_view(view)
        return store is not None and is_store_admin(request.user, store)


class IsStoreOwner(permissions.BasePermission):
    message = 'Only the store owner can manage custom roles'

    def has_permission(self, request, view):
        store = get_store_for_view(view)
        return store is not None and is_store_owner(request.user, store)


class IsStoreManager(permissions.BasePermission):
    """
    Organization OWNER or ADMIN, used for staff management
    """
    message = 'Only store owners and admins can manage staff'

    def has_permission(self, request, view):
        store = get_store_for_view(view)
        if store is None:
            return False
        if getattr(request.user, 'is_super_admin', False):
            return True
        return is_organization_manager(request.user, store)


class CanViewPermissionCatalog(permissions.BasePermission):
    message = 'You do not have access to the permission catalog'

    def has_permission(self, request, view):
        store = get_store_for_view(view)
        if store is None:
            return False
        return is_store_admin(request.user, store)


class HasRolePermission(permissions.BasePermission):
    """
    Checks ``view.required_permission`` (or ``view.required_permissions``
    keyed by action or HTTP method) against the user's roles.

    Routes carrying a ``store_id`` are checked against the roles held in that
    store, and detail routes against the store owning the object. Other
    routes fall back to the user's effective role.
    """

    def get_required_permission(self, request, view):
        mapping = getattr(view, 'required_permissions', None)
        if mapping:
            key = getattr(view, 'action', None)
            if key in mapping:
                return mapping[key]
            return mapping.get(request.method.lower())
        return getattr(view, 'required_permission', None)

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False

        permission = self.get_required_permission(request, view)
        if permission is None:
            return True

        self.message = f'Permission denied: {permission} required'
        store = get_store_for_view(view)
        if store is not None:
            return check_permission(request.user, permission, request=request, store=store)

        lookup_kwarg = getattr(view, 'lookup_url_kwarg', None) or getattr(view, 'lookup_field', 'pk')
        if lookup_kwarg in view.kwargs:
            # decided in has_object_permission once the object is loaded
            return True
        return check_permission(request.user, permission, request=request)

    def has_object_permission(self, request, view, obj):
        permission = self.get_required_permission(request, view)
        if permission is None:
            return True

        store = obj if isinstance(obj, Store) else getattr(obj, 'store', None)
        self.message = f'Permission denied: {permission} required'
        return check_permission(request.user, permission, request=request, store=store)


def _store_from_kwargs(kwargs):
    store_id = kwargs.get('store_id')
    if store_id is None:
        return None
    try:
        return Store.objects.select_related('organization').get(pk=store_id)
    except (Store.DoesNotExist, ValueError):
        raise NotFoundError('Store not found')


# Permission decorators and mixins
def role_permission_required(permission):
    """
    Decorator for function views that require a role permission. A
    ``store_id`` URL argument scopes the check to that store.
    """
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped_view(request, *args, **kwargs):
            if not request.user.is_authenticated:
                raise AuthenticationRequired('Authentication required')
            store = _store_from_kwargs(kwargs)
            if store is not None and not can_access_store(request.user, store.pk):
                raise PermissionDeniedError('Access to this store is not allowed')
            if not check_permission(request.user, permission, request=request, store=store):
                raise PermissionDeniedError(f'Permission denied: {permission} required')
            return view_func(request, *args, **kwargs)
        return _wrapped_view
    return decorator


class RolePermissionMixin:
    """
    Class-based view mixin for role permission checks
    """
    permission_codename = None

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        if not self.permission_codename:
            raise ValueError(
                "RolePermissionMixin requires permission_codename to be set"
            )
        store = _store_from_kwargs(kwargs)
        if not check_permission(request.user, self.permission_codename, request=request, store=store):
            raise PermissionDeniedError(f'Permission denied: {self.permission_codename} required')
