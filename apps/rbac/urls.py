from django.urls import path, include
from rest_framework.routers import DefaultRouter

from . import views

router = DefaultRouter()
router.register(r'stores/(?P<store_id>\d+)/role-requests', views.StoreRoleRequestViewSet, basename='store-role-request')
router.register(r'stores/(?P<store_id>\d+)/custom-roles', views.StoreCustomRoleViewSet, basename='store-custom-role')
router.register(r'admin/role-requests', views.AdminRoleRequestViewSet, basename='admin-role-request')

urlpatterns = [
    path('stores/<int:store_id>/permissions/', views.PermissionCatalogView.as_view(), name='permission-catalog'),
    path('admin/custom-roles/stores/<int:store_id>/', views.AdminStoreLimitView.as_view(), name='admin-store-limit'),
    path('admin/custom-roles/bulk-update-limits/', views.AdminBulkLimitView.as_view(), name='admin-bulk-limits'),
    path('admin/platform-settings/', views.PlatformSettingsView.as_view(), name='platform-settings'),
    path('', include(router.urls)),
]
