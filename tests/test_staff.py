import pytest

from apps.audit.models import PlatformActivity
from apps.notifications.models import Notification
from apps.rbac.models import CustomRoleActivity
from apps.stores.models import StoreStaff
from factories import add_staff, make_custom_role, make_store, make_user

pytestmark = pytest.mark.django_db


def staff_url(store, pk=None):
    base = f'/api/v1/stores/{store.pk}/staff/'
    return f'{base}{pk}/' if pk else base


def invitation_url(store):
    return f'/api/v1/stores/{store.pk}/invitation/'


def test_invite_with_predefined_role(client_for, store, owner):
    recruit = make_user('recruit@shop.test')

    response = client_for(owner).post(
        staff_url(store), {'email': 'Recruit@Shop.test', 'role': 'SALES_MANAGER'}, format='json'
    )

    assert response.status_code == 201
    assert response.data['message'] == 'Staff invitation sent'
    staff = StoreStaff.objects.get(user=recruit)
    assert staff.role == 'SALES_MANAGER'
    assert staff.invited_by == owner
    assert staff.accepted_at is None

    notification = Notification.objects.get(user=recruit)
    assert notification.type == 'STAFF_INVITED'
    assert 'SALES_MANAGER' in notification.message
    assert PlatformActivity.objects.filter(action='STAFF_INVITED', target_user=recruit).exists()


def test_invite_with_custom_role(client_for, store, owner):
    role = make_custom_role(store, name='Packer')
    recruit = make_user('recruit@shop.test')

    response = client_for(owner).post(
        staff_url(store), {'email': recruit.email, 'custom_role_id': role.pk}, format='json'
    )

    assert response.status_code == 201
    assert response.data['data']['custom_role_name'] == 'Packer'
    assert response.data['data']['role_name'] == 'Packer'
    assert CustomRoleActivity.objects.get(custom_role=role).action == 'ROLE_ASSIGNED'


def test_invite_needs_exactly_one_role(client_for, store, owner):
    role = make_custom_role(store)
    make_user('recruit@shop.test')
    client = client_for(owner)

    response = client.post(staff_url(store), {'email': 'recruit@shop.test'}, format='json')
    assert response.status_code == 400
    assert response.data['message'] == 'Either role or custom_role_id must be provided'

    response = client.post(
        staff_url(store),
        {'email': 'recruit@shop.test', 'role': 'SALES_MANAGER', 'custom_role_id': role.pk},
        format='json',
    )
    assert response.status_code == 400
    assert response.data['message'] == 'Cannot specify both role and custom_role_id'


def test_invite_unknown_user(client_for, store, owner):
    response = client_for(owner).post(
        staff_url(store), {'email': 'ghost@shop.test', 'role': 'SALES_MANAGER'}, format='json'
    )
    assert response.status_code == 404
    assert response.data['message'] == 'User not found. They must have an account first.'


def test_invite_unapproved_user(client_for, store, owner):
    make_user('pending@shop.test', account_status='PENDING')
    response = client_for(owner).post(
        staff_url(store), {'email': 'pending@shop.test', 'role': 'SALES_MANAGER'}, format='json'
    )
    assert response.status_code == 400
    assert response.data['message'] == 'User account is not approved'


def test_invite_with_inactive_custom_role(client_for, store, owner):
    role = make_custom_role(store, is_active=False)
    make_user('recruit@shop.test')
    response = client_for(owner).post(
        staff_url(store), {'email': 'recruit@shop.test', 'custom_role_id': role.pk}, format='json'
    )
    assert response.status_code == 404
    assert response.data['message'] == 'Custom role not found or inactive'


def test_invite_with_role_of_another_store(client_for, store, owner):
    other_store = make_store(make_user('other@shop.test'), name='Other Shop')
    foreign_role = make_custom_role(other_store)
    make_user('recruit@shop.test')
    response = client_for(owner).post(
        staff_url(store), {'email': 'recruit@shop.test', 'custom_role_id': foreign_role.pk}, format='json'
    )
    assert response.status_code == 404


def test_invite_existing_active_staff(client_for, store, owner, store_admin):
    response = client_for(owner).post(
        staff_url(store), {'email': store_admin.email, 'role': 'SALES_MANAGER'}, format='json'
    )
    assert response.status_code == 400
    assert response.data['message'] == 'User is already a staff member of this store'


def test_reinvite_reactivates_row(client_for, store, owner):
    former = make_user('former@shop.test')
    staff = add_staff(store, former, role='STORE_ADMIN', is_active=False)

    response = client_for(owner).post(
        staff_url(store), {'email': former.email, 'role': 'CUSTOMER_SERVICE'}, format='json'
    )

    assert response.status_code == 200
    assert response.data['message'] == 'Staff member re-invited'
    staff.refresh_from_db()
    assert staff.is_active is True
    assert staff.role == 'CUSTOMER_SERVICE'
    assert StoreStaff.objects.filter(user=former).count() == 1


def test_store_admin_staff_cannot_manage_staff(client_for, store, store_admin):
    make_user('recruit@shop.test')
    response = client_for(store_admin).post(
        staff_url(store), {'email': 'recruit@shop.test', 'role': 'SALES_MANAGER'}, format='json'
    )
    assert response.status_code == 403


def test_members_can_list_staff(client_for, store, store_admin):
    add_staff(store, make_user('former@shop.test'), role='SALES_MANAGER', is_active=False)
    client = client_for(store_admin)

    response = client.get(staff_url(store))
    assert [s['user']['email'] for s in response.data['data']] == ['admin@shop.test']

    response = client.get(staff_url(store), {'include_inactive': 'true'})
    assert len(response.data['data']) == 2


def test_outsider_cannot_list_staff(client_for, store, outsider):
    response = client_for(outsider).get(staff_url(store))
    assert response.status_code == 403


def test_switch_staff_to_custom_role(client_for, store, owner):
    role = make_custom_role(store, name='Packer')
    worker = make_user('worker@shop.test')
    staff = add_staff(store, worker, role='SALES_MANAGER')

    response = client_for(owner).patch(staff_url(store, staff.pk), {'custom_role_id': role.pk}, format='json')

    assert response.status_code == 200
    assert response.data['message'] == 'Staff member updated'
    staff.refresh_from_db()
    assert staff.role is None
    assert staff.custom_role == role
    assert Notification.objects.get(user=worker).type == 'STAFF_ROLE_CHANGED'


def test_switch_between_custom_roles_logs_both_sides(client_for, store, owner):
    old_role = make_custom_role(store, name='Packer')
    new_role = make_custom_role(store, name='Picker')
    staff = add_staff(store, make_user('worker@shop.test'), custom_role=old_role)

    client_for(owner).patch(staff_url(store, staff.pk), {'custom_role_id': new_role.pk}, format='json')

    assert CustomRoleActivity.objects.get(custom_role=old_role).action == 'ROLE_UNASSIGNED'
    assert CustomRoleActivity.objects.get(custom_role=new_role).action == 'ROLE_ASSIGNED'


def test_update_without_changes(client_for, store, owner, store_admin):
    staff = StoreStaff.objects.get(user=store_admin)
    response = client_for(owner).patch(staff_url(store, staff.pk), {}, format='json')
    assert response.data['message'] == 'No changes detected'


def test_update_missing_staff(client_for, store, owner):
    response = client_for(owner).patch(staff_url(store, 999), {'role': 'SALES_MANAGER'}, format='json')
    assert response.status_code == 404
    assert response.data['message'] == 'Staff member not found'


def test_remove_staff_deactivates(client_for, store, owner):
    role = make_custom_role(store)
    worker = make_user('worker@shop.test')
    staff = add_staff(store, worker, custom_role=role)

    response = client_for(owner).delete(staff_url(store, staff.pk))

    assert response.status_code == 200
    assert response.data['message'] == 'Staff member removed'
    staff.refresh_from_db()
    assert staff.is_active is False
    assert staff.custom_role is None
    assert Notification.objects.get(user=worker).type == 'STAFF_REMOVED'
    assert CustomRoleActivity.objects.get(custom_role=role).action == 'ROLE_UNASSIGNED'


def test_accept_invitation(client_for, store, owner):
    recruit = make_user('recruit@shop.test')
    staff = add_staff(store, recruit, role='SALES_MANAGER')

    response = client_for(recruit).post(invitation_url(store))

    assert response.status_code == 200
    staff.refresh_from_db()
    assert staff.accepted_at is not None
    assert Notification.objects.get(user=owner).type == 'STAFF_INVITE_ACCEPTED'


def test_accept_without_invitation(client_for, store, outsider):
    response = client_for(outsider).post(invitation_url(store))
    assert response.status_code == 404
    assert response.data['message'] == 'No pending invitation found'


def test_decline_invitation(client_for, store):
    recruit = make_user('recruit@shop.test')
    add_staff(store, recruit, role='SALES_MANAGER')

    response = client_for(recruit).delete(invitation_url(store))

    assert response.status_code == 200
    assert not StoreStaff.objects.filter(user=recruit).exists()
    assert PlatformActivity.objects.filter(action='STAFF_DECLINED', actor=recruit).exists()
