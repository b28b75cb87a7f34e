from decimal import Decimal

import pytest

from apps.orders.models import Order
from apps.products.models import Product
from apps.rbac.context import check_permission, get_store_context, stores_with_permission
from apps.stores.models import Membership
from factories import add_staff, make_store, make_user

pytestmark = pytest.mark.django_db


@pytest.fixture
def other_store(owner):
    """A second store where the owner of the first one is only a VIEWER."""
    other = make_store(make_user('rival@shop.test'), name='Other Shop')
    Membership.objects.create(user=owner, organization=other.organization, role='VIEWER')
    return other


def test_store_context_only_uses_roles_in_that_store(owner, store, other_store):
    assert get_store_context(owner, store).effective_role == 'OWNER'

    context = get_store_context(owner, other_store)
    assert context.effective_role == 'VIEWER'
    assert context.store_id == other_store.pk
    assert 'products:delete' not in context.permissions


def test_store_scoped_check_permission(owner, store, other_store):
    assert check_permission(owner, 'products:delete', store=store)
    assert not check_permission(owner, 'products:delete', store=other_store)
    assert check_permission(owner, 'products:read', store=other_store)


def test_staff_role_applies_to_its_own_store_only(store, other_store):
    clerk = make_user('clerk@shop.test')
    add_staff(store, clerk, role='INVENTORY_MANAGER')
    Membership.objects.create(user=clerk, organization=other_store.organization, role='VIEWER')

    assert check_permission(clerk, 'inventory:update', store=store)
    assert not check_permission(clerk, 'inventory:update', store=other_store)


def test_stores_with_permission(owner, store, other_store, super_admin):
    assert set(stores_with_permission(owner, 'products:read')) == {store.pk, other_store.pk}
    assert stores_with_permission(owner, 'orders:read') == [store.pk]
    assert set(stores_with_permission(super_admin, 'orders:read')) == {store.pk, other_store.pk}


def test_viewer_cannot_update_other_store(client_for, owner, other_store):
    response = client_for(owner).patch(f'/api/v1/stores/{other_store.pk}/', {'name': 'Hijacked'}, format='json')

    assert response.status_code == 403
    other_store.refresh_from_db()
    assert other_store.name == 'Other Shop'


def test_viewer_cannot_delete_product_in_other_store(client_for, owner, other_store):
    product = Product.objects.create(store=other_store, name='Lamp', price=Decimal('30.00'))

    response = client_for(owner).delete(f'/api/v1/products/{product.pk}/')

    assert response.status_code == 403
    assert Product.objects.filter(pk=product.pk).exists()


def test_viewer_cannot_adjust_stock_in_other_store(client_for, owner, other_store):
    product = Product.objects.create(store=other_store, name='Lamp', price=Decimal('30.00'), inventory_qty=4)

    response = client_for(owner).post(
        f'/api/v1/products/{product.pk}/adjust-stock/', {'quantity': 4, 'type': 'REMOVE'}, format='json'
    )

    assert response.status_code == 403
    product.refresh_from_db()
    assert product.inventory_qty == 4


def test_viewer_cannot_create_product_in_other_store(client_for, owner, other_store):
    response = client_for(owner).post(
        '/api/v1/products/', {'store': other_store.pk, 'name': 'Sneaky', 'price': '1.00'}, format='json'
    )

    assert response.status_code == 403
    assert not Product.objects.filter(name='Sneaky').exists()


def test_viewer_can_still_read_products_of_other_store(client_for, owner, other_store):
    product = Product.objects.create(store=other_store, name='Lamp', price=Decimal('30.00'))

    response = client_for(owner).get(f'/api/v1/products/{product.pk}/')

    assert response.status_code == 200
    assert response.data['name'] == 'Lamp'


def test_order_list_skips_stores_without_order_access(client_for, owner, store, other_store):
    Order.objects.create(store=store, customer_email='a@mail.test', total=Decimal('10.00'))
    hidden = Order.objects.create(store=other_store, customer_email='b@mail.test', total=Decimal('20.00'))

    response = client_for(owner).get('/api/v1/orders/')

    assert response.status_code == 200
    assert [o['store'] for o in response.data] == [store.pk]
    assert hidden.order_number not in [o['order_number'] for o in response.data]


def test_viewer_cannot_update_order_status_in_other_store(client_for, owner, other_store):
    order = Order.objects.create(store=other_store, customer_email='b@mail.test', total=Decimal('20.00'))

    response = client_for(owner).post(f'/api/v1/orders/{order.pk}/update-status/', {'status': 'PAID'}, format='json')

    assert response.status_code == 403
    order.refresh_from_db()
    assert order.status == 'PENDING'


def test_viewer_cannot_read_analytics_of_other_store(client_for, owner, other_store):
    response = client_for(owner).get(f'/api/v1/stores/{other_store.pk}/analytics/')

    assert response.status_code == 403
    assert response.data['detail'] == 'Permission denied: analytics:read required'
