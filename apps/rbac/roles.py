from .constants import (
    ROLE_PERMISSIONS,
    ROLE_DESCRIPTIONS,
    ROLE_HIERARCHY,
    ROLE_LEVELS,
)


class RolePermissions:
    """
    Static role table lookups.

    Permission strings are ``resource:action`` tokens. A role grants a
    permission on a direct match, through ``resource:*`` (``resource`` being
    everything before the first colon) or through the global ``*``.
    """

    PERMISSIONS = ROLE_PERMISSIONS
    LEVELS = ROLE_LEVELS

    @classmethod
    def is_valid_role(cls, role):
        return role in cls.PERMISSIONS

    @classmethod
    def get_permissions(cls, role):
        """Returns a copy of the role's permissions, empty for unknown roles"""
        return list(cls.PERMISSIONS.get(role, []))

    @classmethod
    def has_permission(cls, role, permission):
        permissions = cls.PERMISSIONS.get(role)
        if not permissions:
            return False

        if '*' in permissions:
            return True

        if permission in permissions:
            return True

        resource = permission.split(':')[0]
        return f'{resource}:*' in permissions

    @classmethod
    def has_any_permission(cls, role, permissions):
        return any(cls.has_permission(role, permission) for permission in permissions)

    @classmethod
    def has_all_permissions(cls, role, permissions):
        return all(cls.has_permission(role, permission) for permission in permissions)

    @classmethod
    def can_access_resource(cls, role, resource):
        permissions = cls.PERMISSIONS.get(role)
        if not permissions:
            return False

        if '*' in permissions:
            return True

        return any(
            permission == f'{resource}:*' or permission.startswith(f'{resource}:')
            for permission in permissions
        )

    @classmethod
    def get_role_level(cls, role):
        return ROLE_HIERARCHY.get(role, 0)

    @classmethod
    def has_role_level_or_higher(cls, role, level):
        if isinstance(level, str):
            level = cls.LEVELS[level]
        return cls.get_role_level(role) >= level

    @classmethod
    def get_role_description(cls, role):
        return ROLE_DESCRIPTIONS.get(role, 'Unknown role')

    @classmethod
    def get_role_display_name(cls, role):
        return role.replace('_', ' ').title()


has_permission = RolePermissions.has_permission
has_any_permission = RolePermissions.has_any_permission
has_all_permissions = RolePermissions.has_all_permissions
get_permissions = RolePermissions.get_permissions
can_access_resource = RolePermissions.can_access_resource
