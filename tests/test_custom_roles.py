import pytest

from apps.rbac.models import CustomRole, CustomRoleActivity
from apps.stores.models import StoreStaff
from factories import add_staff, make_custom_role, make_user

pytestmark = pytest.mark.django_db


def roles_url(store, pk=None):
    base = f'/api/v1/stores/{store.pk}/custom-roles/'
    return f'{base}{pk}/' if pk else base


def test_list_custom_roles(client_for, store, owner):
    role = make_custom_role(store, name='Packer')
    add_staff(store, make_user('packer@shop.test'), custom_role=role)
    make_custom_role(store, name='Retired', is_active=False)

    response = client_for(owner).get(roles_url(store))

    assert response.status_code == 200
    data = response.data['data']
    assert data['is_owner'] is True
    assert data['used'] == 2
    by_name = {r['name']: r for r in data['custom_roles']}
    assert by_name['Packer']['staff_count'] == 1
    assert by_name['Retired']['staff_count'] == 0


def test_list_filters_active_roles(client_for, store, store_admin):
    make_custom_role(store, name='Packer')
    make_custom_role(store, name='Retired', is_active=False)

    response = client_for(store_admin).get(roles_url(store), {'is_active': 'false'})

    assert [r['name'] for r in response.data['data']['custom_roles']] == ['Retired']
    assert response.data['data']['is_owner'] is False


def test_retrieve_includes_staff_and_activity(client_for, store, owner):
    role = make_custom_role(store, name='Packer')
    packer = make_user('packer@shop.test')
    add_staff(store, packer, custom_role=role)
    CustomRoleActivity.objects.create(action='ROLE_CREATED', actor=owner, store=store,
                                      custom_role=role, role_name=role.name)

    response = client_for(owner).get(roles_url(store, role.pk))

    data = response.data['data']
    assert data['name'] == 'Packer'
    assert [s['user']['email'] for s in data['staff']] == ['packer@shop.test']
    assert [a['action'] for a in data['activities']] == ['ROLE_CREATED']


def test_retrieve_missing_role(client_for, store, owner):
    response = client_for(owner).get(roles_url(store, 999))
    assert response.status_code == 404
    assert response.data['message'] == 'Role not found'


def test_owner_updates_permissions(client_for, store, owner):
    role = make_custom_role(store, permissions=['products:read'])

    response = client_for(owner).patch(
        roles_url(store, role.pk), {'permissions': ['products:read', 'products:update']}, format='json'
    )

    assert response.status_code == 200
    assert response.data['message'] == 'Custom role updated successfully'
    assert response.data['data']['changes'] == ['permissions']
    role.refresh_from_db()
    assert role.permissions == ['products:read', 'products:update']
    assert role.last_modified_by == owner

    activity = CustomRoleActivity.objects.get(custom_role=role)
    assert activity.action == 'PERMISSIONS_CHANGED'
    assert activity.previous_value == {'permissions': ['products:read']}


def test_update_without_changes(client_for, store, owner):
    role = make_custom_role(store, name='Packer')

    response = client_for(owner).patch(roles_url(store, role.pk), {'name': 'Packer'}, format='json')

    assert response.status_code == 200
    assert response.data['message'] == 'No changes detected'
    assert not CustomRoleActivity.objects.exists()


def test_deactivate_role(client_for, store, owner):
    role = make_custom_role(store)

    client_for(owner).patch(roles_url(store, role.pk), {'is_active': False}, format='json')

    role.refresh_from_db()
    assert role.is_active is False
    assert CustomRoleActivity.objects.get(custom_role=role).action == 'ROLE_DEACTIVATED'


def test_rename_to_existing_name_conflicts(client_for, store, owner):
    make_custom_role(store, name='Packer')
    role = make_custom_role(store, name='Picker')

    response = client_for(owner).patch(roles_url(store, role.pk), {'name': 'Packer'}, format='json')

    assert response.status_code == 409


def test_update_rejects_restricted_permissions(client_for, store, owner):
    role = make_custom_role(store)

    response = client_for(owner).patch(roles_url(store, role.pk), {'permissions': ['roles:create']}, format='json')

    assert response.status_code == 400
    assert response.data['data']['invalid_permissions'] == ['roles:create']


def test_update_rejects_empty_permissions(client_for, store, owner):
    role = make_custom_role(store)
    response = client_for(owner).patch(roles_url(store, role.pk), {'permissions': []}, format='json')
    assert response.status_code == 400
    assert response.data['message'] == 'At least one permission is required'


def test_store_admin_cannot_update(client_for, store, store_admin):
    role = make_custom_role(store)

    response = client_for(store_admin).patch(roles_url(store, role.pk), {'is_active': False}, format='json')

    assert response.status_code == 403
    assert response.data['detail'] == 'Only store owners can update custom roles'


def test_delete_unassigned_role(client_for, store, owner):
    role = make_custom_role(store, name='Packer')

    response = client_for(owner).delete(roles_url(store, role.pk))

    assert response.status_code == 200
    assert not CustomRole.objects.exists()
    activity = CustomRoleActivity.objects.get(action='ROLE_DELETED')
    assert activity.role_name == 'Packer'
    assert activity.custom_role is None


def test_delete_assigned_role_needs_force(client_for, store, owner):
    role = make_custom_role(store)
    add_staff(store, make_user('packer@shop.test'), custom_role=role)

    response = client_for(owner).delete(roles_url(store, role.pk))

    assert response.status_code == 400
    assert response.data['message'] == 'Role is currently assigned to staff members'
    assert response.data['data']['staff_count'] == 1
    assert CustomRole.objects.filter(pk=role.pk).exists()


def test_force_delete_unassigns_staff(client_for, store, owner):
    role = make_custom_role(store)
    staff = add_staff(store, make_user('packer@shop.test'), custom_role=role)

    response = client_for(owner).delete(roles_url(store, role.pk) + '?force=true')

    assert response.status_code == 200
    assert response.data['data'] == {'unassigned_staff': 1}
    staff.refresh_from_db()
    assert staff.custom_role is None
    assert StoreStaff.objects.filter(pk=staff.pk).exists()
    actions = set(CustomRoleActivity.objects.values_list('action', flat=True))
    assert actions == {'ROLE_UNASSIGNED', 'ROLE_DELETED'}


def test_store_admin_cannot_delete(client_for, store, store_admin):
    role = make_custom_role(store)
    response = client_for(store_admin).delete(roles_url(store, role.pk))
    assert response.status_code == 403
    assert response.data['detail'] == 'Only store owners can delete custom roles'


def test_permission_catalog_for_store_admin(client_for, store, store_admin):
    response = client_for(store_admin).get(f'/api/v1/stores/{store.pk}/permissions/')

    assert response.status_code == 200
    data = response.data['data']
    assert 'Products' in data['permissions_by_category']
    assert 'billing:*' in data['restricted']
    assert 'Order Processor' in data['templates']


def test_permission_catalog_hidden_from_regular_staff(client_for, store):
    clerk = make_user('clerk@shop.test')
    add_staff(store, clerk, role='CUSTOMER_SERVICE')
    response = client_for(clerk).get(f'/api/v1/stores/{store.pk}/permissions/')
    assert response.status_code == 403
