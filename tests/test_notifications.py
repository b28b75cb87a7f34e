from unittest import mock

import pytest
from django.db import DatabaseError
from celery.exceptions import Retry

from apps.notifications import emails, tasks
from apps.notifications.models import Notification
from apps.notifications.services import NotificationService
from factories import make_user

pytestmark = pytest.mark.django_db


def test_notify_super_admins_skips_inactive(super_admin):
    retired = make_user('retired@platform.test', is_super_admin=True, is_active=False)

    NotificationService().notify_super_admins('SYSTEM', 'Heads up', 'Maintenance tonight')

    assert list(Notification.objects.values_list('user__email', flat=True)) == [super_admin.email]
    assert not Notification.objects.filter(user=retired).exists()


def test_notify_failure_does_not_raise(owner):
    with mock.patch.object(Notification.objects, 'create', side_effect=DatabaseError('down')):
        assert NotificationService().notify(owner, 'SYSTEM', 'Title', 'Body') is None


def test_list_and_mark_read(client_for, owner):
    service = NotificationService()
    first = service.notify(owner, 'SYSTEM', 'One', 'First')
    service.notify(owner, 'SYSTEM', 'Two', 'Second')
    client = client_for(owner)

    assert client.get('/api/v1/notifications/unread_count/').data == {'unread_count': 2}

    response = client.post(f'/api/v1/notifications/{first.pk}/mark_read/')
    assert response.data['read'] is True
    assert len(client.get('/api/v1/notifications/', {'unread': 'true'}).data) == 1

    response = client.post('/api/v1/notifications/mark_all_read/')
    assert response.data['updated'] == 1
    assert client.get('/api/v1/notifications/unread_count/').data == {'unread_count': 0}


def test_users_only_see_their_own(client_for, owner, outsider):
    foreign = NotificationService().notify(outsider, 'SYSTEM', 'Private', 'Not yours')
    response = client_for(owner).get(f'/api/v1/notifications/{foreign.pk}/')
    assert response.status_code == 404


def test_send_email_skips_without_api_key(settings):
    settings.RESEND_API_KEY = ''
    with mock.patch('apps.notifications.emails.resend.Emails.send') as send:
        assert emails.send_email('someone@mail.test', 'Hi', '<p>Hi</p>') is False
    send.assert_not_called()


def test_send_email_uses_resend(settings):
    settings.RESEND_API_KEY = 're_test_key'
    with mock.patch('apps.notifications.emails.resend.Emails.send') as send:
        assert emails.send_email('someone@mail.test', 'Hi', '<p>Hi</p>') is True
    params = send.call_args[0][0]
    assert params['to'] == ['someone@mail.test']
    assert params['subject'] == 'Hi'


def test_email_task_renders_template(owner, settings):
    settings.RESEND_API_KEY = 're_test_key'
    with mock.patch('apps.notifications.emails.resend.Emails.send') as send:
        assert tasks.send_role_approved_email(owner.pk, 'Corner Shop', 'Packer') is True
    html = send.call_args[0][0]['html']
    assert 'Packer' in html
    assert 'Corner Shop' in html


def test_email_task_for_missing_user():
    assert tasks.send_staff_invited_email(987654, 'Corner Shop', 'Packer') is False


def test_email_task_retries_provider_errors(owner, settings):
    settings.RESEND_API_KEY = 're_test_key'
    error = RuntimeError('boom')
    with mock.patch('apps.notifications.emails.resend.Emails.send', side_effect=error), \
            mock.patch.object(tasks.send_role_rejected_email, 'retry', side_effect=Retry()) as retry:
        with pytest.raises(Retry):
            tasks.send_role_rejected_email(owner.pk, 'Corner Shop', 'Packer', 'Too broad')

    retry.assert_called_once_with(exc=error, countdown=60)


def test_email_templates_escape_user_input():
    html = emails.role_rejected_email('<b>Ann</b>', 'Shop & Co', 'Packer', '<script>alert(1)</script>')

    assert '<script>' not in html
    assert '&lt;script&gt;alert(1)&lt;/script&gt;' in html
    assert 'Shop &amp; Co' in html
    assert '&lt;b&gt;Ann&lt;/b&gt;' in html


def test_emails_are_queued_after_commit(django_capture_on_commit_callbacks, owner):
    with django_capture_on_commit_callbacks() as callbacks:
        tasks.queue_email(tasks.send_staff_invited_email, owner.pk, 'Corner Shop', 'Packer')
    assert len(callbacks) == 1


def test_queue_email_logs_broker_failures(django_capture_on_commit_callbacks, owner):
    with mock.patch.object(tasks.send_staff_invited_email, 'delay', side_effect=ConnectionError('no broker')):
        with django_capture_on_commit_callbacks(execute=True):
            tasks.queue_email(tasks.send_staff_invited_email, owner.pk, 'Corner Shop', 'Packer')
