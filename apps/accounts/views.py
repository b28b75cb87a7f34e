from rest_framework.views import APIView
from rest_framework.filters import SearchFilter, OrderingFilter
from rest_framework.response import Response
from rest_framework import status, permissions, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.exceptions import TokenError
from django.utils import timezone
import logging

from apps.audit.services import ActivityService
from apps.rbac.context import get_user_context
from apps.rbac.permissions import IsSuperAdmin
from .models import CustomUser
from .serializers import (
    CustomUserSerializer,
    LoginSerializer,
    AdminUserDetailSerializer,
)

logger = logging.getLogger(__name__)


class RegisterUserView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = CustomUserSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response({
                'success': True,
                'message': "User created!",
                'data': serializer.data,
            }, status=status.HTTP_201_CREATED)
        return Response({'success': False, "error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)


class LoginView(APIView):
    permission_classes = [permissions.AllowAny]
    serializer_class = LoginSerializer

    def post(self, request):
        serializer = self.serializer_class(data=request.data, context={'request': request})

        if serializer.is_valid():
            user = serializer.validated_data['user']
            refresh = RefreshToken.for_user(user)
            context = get_user_context(user)
            return Response({
                'success': True,
                'message': 'Login successful',
                'access_token': str(refresh.access_token),
                'refresh_token': str(refresh),
                'role': context.effective_role if context else None,
            }, status=status.HTTP_200_OK)

        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        refresh_token = request.data.get("refresh_token")
        if not refresh_token:
            return Response({"error": "Refresh token is required."}, status=status.HTTP_400_BAD_REQUEST)

        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({"message": "Successfully logged out."}, status=status.HTTP_200_OK)


class UpdateUserView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        serializer = CustomUserSerializer(request.user)
        return Response({
            "success": True,
            "message": "User data retrieved successfully.",
            "data": serializer.data
        }, status=status.HTTP_200_OK)

    def patch(self, request):
        serializer = CustomUserSerializer(request.user, data=request.data, partial=True)

        if serializer.is_valid():
            serializer.save()
            return Response({
                "success": True,
                "message": "User data updated successfully.",
                "data": serializer.data
            }, status=status.HTTP_200_OK)

        return Response({
            "success": False,
            "message": "Failed to update user data.",
            "data": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)


class UserContextView(APIView):
    """Resolved roles and permissions of the signed-in user."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        context = get_user_context(request.user)
        return Response({'success': True, 'data': context.as_dict()}, status=status.HTTP_200_OK)


class AdminUserViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = CustomUser.objects.all()
    serializer_class = AdminUserDetailSerializer
    permission_classes = [IsSuperAdmin]
    filter_backends = [SearchFilter, OrderingFilter]
    search_fields = ['email', 'name']
    ordering_fields = ['email', 'date_joined']

    def get_queryset(self):
        queryset = super().get_queryset()
        account_status = self.request.query_params.get('status')
        if account_status:
            queryset = queryset.filter(account_status=account_status)
        return queryset

    def _set_status(self, user, account_status):
        user.account_status = account_status
        if account_status == 'APPROVED':
            user.approved_at = timezone.now()
        user.save(update_fields=['account_status', 'approved_at'])
        ActivityService.log(
            f'USER_{account_status}',
            f'Marked {user.email} as {account_status.lower()}',
            actor=self.request.user,
            target_user=user,
            entity_type='User',
            entity_id=user.pk,
            request=self.request,
        )
        logger.info(f"User {user.email} marked {account_status} by {self.request.user.email}")
        return Response({'success': True, 'data': self.get_serializer(user).data})

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        return self._set_status(self.get_object(), 'APPROVED')

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        return self._set_status(self.get_object(), 'REJECTED')

    @action(detail=True, methods=['post'])
    def suspend(self, request, pk=None):
        return self._set_status(self.get_object(), 'SUSPENDED')
