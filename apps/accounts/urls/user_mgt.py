from django.urls import path, include
from rest_framework.routers import DefaultRouter
from apps.accounts.views import (
    UpdateUserView,
    UserContextView,
    AdminUserViewSet,
)

router = DefaultRouter()
router.register(r'admin/users', AdminUserViewSet, basename='admin-user')

urlpatterns = [
    path('profile/', UpdateUserView.as_view(), name='update-profile'),
    path('me/', UserContextView.as_view(), name='user-context'),
    path('', include(router.urls)),
]
