from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated

from apps.rbac.exceptions import RoleRequestError


class ResponseEnvelopeMixin:
    """
    Standard response format with success, message and data. Role system
    errors raised by services are rendered in the same format.
    """

    def format_response(self, data=None, message="", success=True, status_code=status.HTTP_200_OK):
        response = {
            "success": success,
            "message": message,
            "data": data if data is not None else {}
        }
        return Response(response, status=status_code)

    def validation_error(self, serializer):
        return self.format_response(
            data={"errors": serializer.errors},
            message="Validation error",
            success=False,
            status_code=status.HTTP_400_BAD_REQUEST
        )

    def handle_exception(self, exc):
        if isinstance(exc, RoleRequestError):
            return self.format_response(
                data=exc.extra,
                message=str(exc.detail),
                success=False,
                status_code=exc.status_code
            )
        return super().handle_exception(exc)


class BaseAPIView(ResponseEnvelopeMixin, APIView):
    permission_classes = [IsAuthenticated]
