from django.urls import path, include
from rest_framework.routers import DefaultRouter

from . import views

router = DefaultRouter()
router.register(r'stores', views.StoreViewSet, basename='store')
router.register(r'stores/(?P<store_id>\d+)/staff', views.StoreStaffViewSet, basename='store-staff')

urlpatterns = [
    path('stores/<int:store_id>/invitation/', views.StaffInvitationView.as_view(), name='staff-invitation'),
    path('', include(router.urls)),
]
