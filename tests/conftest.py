import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.accounts.models import CustomUser
from factories import add_staff, make_store, make_user


@pytest.fixture(autouse=True)
def clear_cache():
    # PlatformSettings is cached, the database is not
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def super_admin(db):
    return CustomUser.objects.create_superuser(email='root@platform.test', password='password123')


@pytest.fixture
def owner(db):
    return make_user('owner@shop.test')


@pytest.fixture
def store(owner):
    return make_store(owner)


@pytest.fixture
def store_admin(store):
    user = make_user('admin@shop.test')
    add_staff(store, user, role='STORE_ADMIN')
    return user


@pytest.fixture
def outsider(db):
    return make_user('outsider@elsewhere.test')


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for(api_client):
    def _client(user):
        api_client.force_authenticate(user=user)
        return api_client
    return _client
