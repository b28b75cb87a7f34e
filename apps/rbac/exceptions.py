from rest_framework import status
from rest_framework.exceptions import APIException


class RoleRequestError(APIException):
    """Base error for the role system, rendered by DRF's exception handler."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid role request.'
    default_code = 'role_request_error'

    def __init__(self, detail=None, code=None, extra=None):
        super().__init__(detail, code)
        self.extra = extra or {}


class AuthenticationRequired(RoleRequestError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Authentication required'
    default_code = 'not_authenticated'


class PermissionDeniedError(RoleRequestError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Permission denied'
    default_code = 'permission_denied'


class NotFoundError(RoleRequestError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found'
    default_code = 'not_found'


class ConflictError(RoleRequestError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict'
    default_code = 'conflict'


class LimitExceededError(RoleRequestError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = 'Limit exceeded'
    default_code = 'limit_exceeded'
