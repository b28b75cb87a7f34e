import pytest
from rest_framework.response import Response
from rest_framework.test import APIRequestFactory, force_authenticate
from rest_framework.views import APIView

from apps.rbac.permissions import HasRolePermission, RolePermissionMixin
from apps.utils.baseViews import BaseAPIView
from factories import add_staff, make_user

pytestmark = pytest.mark.django_db

factory = APIRequestFactory()


class ExportView(RolePermissionMixin, APIView):
    permission_codename = 'reports:export'

    def get(self, request):
        return Response({'exported': True})


class OrdersByMethodView(BaseAPIView):
    permission_classes = [HasRolePermission]
    required_permissions = {'get': 'orders:read', 'post': 'orders:create'}

    def get(self, request):
        return self.format_response(message='read')

    def post(self, request):
        return self.format_response(message='created')


class MisconfiguredView(RolePermissionMixin, APIView):
    def get(self, request):
        return Response({})


def call(view, user, method='get'):
    request = getattr(factory, method)('/')
    force_authenticate(request, user=user)
    return view.as_view()(request)


def test_mixin_allows_holder(store):
    analyst = make_user('analyst@shop.test')
    add_staff(store, analyst, role='STORE_ADMIN')
    assert call(ExportView, analyst).status_code == 200


def test_mixin_denies_others(store):
    agent = make_user('agent@shop.test')
    add_staff(store, agent, role='CUSTOMER_SERVICE')

    response = call(ExportView, agent)

    assert response.status_code == 403
    assert response.data['detail'] == 'Permission denied: reports:export required'


def test_mixin_requires_codename(owner):
    with pytest.raises(ValueError):
        call(MisconfiguredView, owner)


def test_required_permission_by_http_method(store):
    agent = make_user('agent@shop.test')
    add_staff(store, agent, role='CUSTOMER_SERVICE')

    assert call(OrdersByMethodView, agent).status_code == 200
    response = call(OrdersByMethodView, agent, method='post')
    assert response.status_code == 403
    assert response.data['detail'] == 'Permission denied: orders:create required'


def test_anonymous_requests_are_refused():
    request = factory.get('/')
    response = OrdersByMethodView.as_view()(request)
    assert response.status_code == 401
