from django.urls import path
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
    TokenBlacklistView,
)
from apps.accounts.serializers import ApprovedTokenObtainPairSerializer
from apps.accounts.views import (
    RegisterUserView,
    LoginView,
    LogoutView,
)

urlpatterns = [
    path('token/', TokenObtainPairView.as_view(serializer_class=ApprovedTokenObtainPairSerializer), name='token_obtain_pair'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('token/logout/', TokenBlacklistView.as_view(), name='token_blacklist'),
    path('register/', RegisterUserView.as_view(), name='register'),
    path('login/', LoginView.as_view(), name='login'),
    path('logout/', LogoutView.as_view(), name='logout'),
]
