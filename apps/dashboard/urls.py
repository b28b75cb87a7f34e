from django.urls import path
from . import views

urlpatterns = [
    path('stores/<int:store_id>/analytics/', views.store_analytics, name='store-analytics'),
    path('admin/overview/', views.platform_overview, name='platform-overview'),
]
