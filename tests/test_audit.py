from unittest import mock

import pytest
from django.db import DatabaseError
from rest_framework.test import APIRequestFactory

from apps.audit.models import AuditLog, PlatformActivity
from apps.audit.services import ActivityService, AuditService, get_client_ip

pytestmark = pytest.mark.django_db


def test_request_metadata_is_recorded(owner, store):
    request = APIRequestFactory().get(
        '/api/v1/orders/', HTTP_X_FORWARDED_FOR='203.0.113.9, 10.0.0.1', HTTP_USER_AGENT='pytest'
    )

    entry = AuditService.log('EXPORT', 'Order', entity_id=5, user=owner, store_id=store.pk, request=request)

    assert entry.endpoint == '/api/v1/orders/'
    assert entry.method == 'GET'
    assert entry.ip_address == '203.0.113.9'
    assert entry.user_agent == 'pytest'
    assert entry.entity_id == '5'


def test_client_ip_falls_back_to_remote_addr():
    request = APIRequestFactory().get('/', REMOTE_ADDR='198.51.100.4')
    assert get_client_ip(request) == '198.51.100.4'
    assert get_client_ip(None) is None


def test_audit_failure_is_swallowed(owner):
    with mock.patch.object(AuditLog.objects, 'create', side_effect=DatabaseError('full')):
        assert AuditService.log_permission_check(owner, 'orders:read', True) is None


def test_activity_failure_is_swallowed(owner):
    with mock.patch.object(PlatformActivity.objects, 'create', side_effect=DatabaseError('full')):
        assert ActivityService.log('SOMETHING', 'Did a thing', actor=owner) is None


def test_anonymous_user_is_not_stored():
    from django.contrib.auth.models import AnonymousUser
    entry = AuditService.log('PERMISSION_DENIED', 'Permission', user=AnonymousUser())
    assert entry.user is None
