from decimal import Decimal

import pytest
from rest_framework.exceptions import ValidationError

from apps.audit.models import AuditLog
from apps.products.models import Category, InventoryLog, Product
from apps.products.services import InventoryService, calculate_new_quantity, should_alert_low_stock
from factories import add_staff, make_store, make_user


def make_product(store, **extra):
    extra.setdefault('name', 'Blue Mug')
    extra.setdefault('price', Decimal('12.00'))
    return Product.objects.create(store=store, **extra)


def test_calculate_new_quantity():
    assert calculate_new_quantity(10, 5, 'ADD') == (15, 5)
    assert calculate_new_quantity(10, 4, 'REMOVE') == (6, -4)
    assert calculate_new_quantity(10, 3, 'SET') == (3, -7)


def test_cannot_remove_more_than_in_stock():
    with pytest.raises(ValidationError) as excinfo:
        calculate_new_quantity(2, 5, 'REMOVE', 'Blue Mug')
    assert 'Cannot remove 5 units from "Blue Mug". Current stock: 2' in str(excinfo.value.detail)


def test_unknown_adjustment_type():
    with pytest.raises(ValidationError):
        calculate_new_quantity(2, 1, 'MULTIPLY')


def test_low_stock_alert_rules():
    assert should_alert_low_stock(10, 5, 5, 'IN_STOCK', 'LOW_STOCK')
    assert should_alert_low_stock(6, 0, 5, 'IN_STOCK', 'OUT_OF_STOCK')
    assert not should_alert_low_stock(4, 3, 5, 'LOW_STOCK', 'LOW_STOCK')
    assert not should_alert_low_stock(10, 8, 5, 'IN_STOCK', 'IN_STOCK')


@pytest.mark.django_db
def test_status_set_from_initial_quantity(store):
    assert make_product(store, name='Empty', inventory_qty=0).inventory_status == 'OUT_OF_STOCK'
    assert make_product(store, name='Few', inventory_qty=3).inventory_status == 'LOW_STOCK'
    assert make_product(store, name='Plenty', inventory_qty=30).inventory_status == 'IN_STOCK'


@pytest.mark.django_db
def test_adjust_stock_logs_movement(store, owner):
    product = make_product(store, inventory_qty=20)

    product = InventoryService.adjust_stock(product, 4, 'REMOVE', reason='damaged', note='Dropped box', user=owner)

    assert product.inventory_qty == 16
    assert product.inventory_status == 'IN_STOCK'
    log = InventoryLog.objects.get(product=product)
    assert (log.previous_qty, log.new_qty, log.change_qty) == (20, 16, -4)
    assert log.reason == 'damaged'
    assert log.user == owner
    assert not AuditLog.objects.filter(action='low_stock_alert').exists()


@pytest.mark.django_db
def test_crossing_threshold_raises_alert(store):
    product = make_product(store, inventory_qty=8)

    product = InventoryService.adjust_stock(product, 4, 'SET', reason='inventory_count')

    assert product.inventory_status == 'LOW_STOCK'
    alert = AuditLog.objects.get(action='low_stock_alert')
    assert alert.entity_type == 'Product'
    assert alert.entity_id == str(product.pk)
    assert alert.store_id == store.pk
    assert alert.changes['current_stock'] == 4
    assert alert.changes['threshold'] == 5


@pytest.mark.django_db
def test_negative_quantity_rejected(store):
    product = make_product(store, inventory_qty=8)
    with pytest.raises(ValidationError):
        InventoryService.adjust_stock(product, -1, 'ADD')


@pytest.mark.django_db
def test_adjust_stock_endpoint(client_for, store):
    stocker = make_user('stocker@shop.test')
    add_staff(store, stocker, role='INVENTORY_MANAGER')
    product = make_product(store, inventory_qty=2)

    response = client_for(stocker).post(
        f'/api/v1/products/{product.pk}/adjust-stock/',
        {'quantity': 10, 'type': 'ADD', 'reason': 'restock'},
        format='json',
    )

    assert response.status_code == 200
    assert response.data['inventory_qty'] == 12
    assert response.data['inventory_status'] == 'IN_STOCK'

    logs = client_for(stocker).get(f'/api/v1/products/{product.pk}/inventory-logs/')
    assert logs.data[0]['reason_label'] == 'Restock'


@pytest.mark.django_db
def test_adjust_stock_over_removal_is_400(client_for, store, owner):
    product = make_product(store, inventory_qty=2)
    response = client_for(owner).post(
        f'/api/v1/products/{product.pk}/adjust-stock/',
        {'quantity': 3, 'type': 'REMOVE'},
        format='json',
    )
    assert response.status_code == 400
    product.refresh_from_db()
    assert product.inventory_qty == 2


@pytest.mark.django_db
def test_sales_staff_cannot_adjust_stock(client_for, store):
    seller = make_user('seller@shop.test')
    add_staff(store, seller, role='SALES_MANAGER')
    product = make_product(store, inventory_qty=2)

    response = client_for(seller).post(
        f'/api/v1/products/{product.pk}/adjust-stock/', {'quantity': 1, 'type': 'ADD'}, format='json'
    )

    assert response.status_code == 403


@pytest.mark.django_db
def test_low_stock_listing(client_for, store, owner):
    make_product(store, name='Plenty', inventory_qty=30)
    make_product(store, name='Few', inventory_qty=3)
    make_product(store, name='Empty', inventory_qty=0)

    response = client_for(owner).get('/api/v1/products/low-stock/')

    assert [p['name'] for p in response.data] == ['Empty', 'Few']


@pytest.mark.django_db
def test_product_listing_is_store_scoped(client_for, store, owner):
    make_product(store, name='Ours')
    make_product(make_store(make_user('rival@shop.test'), name='Rival'), name='Theirs')

    response = client_for(owner).get('/api/v1/products/')

    assert [p['name'] for p in response.data['results']] == ['Ours']


@pytest.mark.django_db
def test_cannot_create_product_in_foreign_store(client_for, store, owner):
    rival = make_store(make_user('rival@shop.test'), name='Rival')
    response = client_for(owner).post(
        '/api/v1/products/', {'store': rival.pk, 'name': 'Sneaky', 'price': '1.00'}, format='json'
    )
    assert response.status_code == 403
    assert not Product.objects.filter(name='Sneaky').exists()


@pytest.mark.django_db
def test_update_cannot_change_stock_directly(client_for, store, owner):
    product = make_product(store, inventory_qty=7)
    response = client_for(owner).patch(
        f'/api/v1/products/{product.pk}/', {'inventory_qty': 500, 'price': '15.00'}, format='json'
    )
    assert response.status_code == 200
    product.refresh_from_db()
    assert product.inventory_qty == 7
    assert product.price == Decimal('15.00')


@pytest.mark.django_db
def test_category_tree(client_for, store, owner):
    client = client_for(owner)
    parent = client.post('/api/v1/categories/', {'store': store.pk, 'name': 'Kitchen'}, format='json')
    assert parent.status_code == 201
    child = client.post(
        '/api/v1/categories/',
        {'store': store.pk, 'name': 'Mugs', 'parent': parent.data['id']},
        format='json',
    )
    assert child.status_code == 201
    assert Category.objects.get(name='Mugs').slug == 'mugs'

    response = client.get('/api/v1/categories/')
    assert [c['name'] for c in response.data] == ['Kitchen']
    assert [c['name'] for c in response.data[0]['children']] == ['Mugs']


@pytest.mark.django_db
def test_category_parent_must_share_store(client_for, store, owner):
    rival = make_store(make_user('rival@shop.test'), name='Rival')
    foreign_parent = Category.objects.create(store=rival, name='Elsewhere')

    response = client_for(owner).post(
        '/api/v1/categories/',
        {'store': store.pk, 'name': 'Mugs', 'parent': foreign_parent.pk},
        format='json',
    )

    assert response.status_code == 400
