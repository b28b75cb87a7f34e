from django.contrib import admin
from django.urls import path, include
from django.contrib.admin.views.decorators import staff_member_required
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)

urlpatterns = [
    path("api/schema/", staff_member_required(SpectacularAPIView.as_view()), name="schema"),
    path("api/docs/swagger/", staff_member_required(SpectacularSwaggerView.as_view(url_name="schema")), name="swagger-ui"),
    path("api/docs/redoc/", staff_member_required(SpectacularRedocView.as_view(url_name="schema")), name="redoc"),
    path('admin/', admin.site.urls),
    path('api/v1/auth/', include('apps.accounts.urls.auth')),
    path('api/v1/user-mgt/', include('apps.accounts.urls.user_mgt')),
    path('api/v1/notifications/', include('apps.notifications.urls')),
    path('api/v1/', include('apps.rbac.urls')),
    path('api/v1/', include('apps.stores.urls')),
    path('api/v1/', include('apps.products.urls')),
    path('api/v1/', include('apps.orders.urls')),
    path('api/v1/', include('apps.dashboard.urls')),
]
