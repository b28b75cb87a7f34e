from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.orders.models import DiscountCode, Order
from apps.orders.services import DiscountService
from factories import add_staff, make_store, make_user

pytestmark = pytest.mark.django_db


def make_discount(store, **extra):
    extra.setdefault('code', 'SAVE10')
    extra.setdefault('name', 'Ten off')
    extra.setdefault('type', 'PERCENTAGE')
    extra.setdefault('value', Decimal('10'))
    return DiscountCode.objects.create(store=store, **extra)


def test_code_is_normalised_on_save(store):
    discount = make_discount(store, code=' save10 ', customer_emails=[' VIP@Mail.test '])
    assert discount.code == 'SAVE10'
    assert discount.customer_emails == ['vip@mail.test']


def test_percentage_discount(store):
    make_discount(store)
    result = DiscountService(store).apply_code('save10', Decimal('80.00'), shipping_amount=Decimal('5.00'))

    assert result['valid'] is True
    assert result['discount_amount'] == Decimal('8.00')
    assert result['original_total'] == Decimal('85.00')
    assert result['discounted_total'] == Decimal('77.00')


def test_percentage_discount_is_capped(store):
    discount = make_discount(store, value=Decimal('50'), max_discount_amount=Decimal('20.00'))
    assert DiscountService.calculate_discount(discount, Decimal('100.00')) == Decimal('20.00')


def test_fixed_discount_never_exceeds_subtotal(store):
    discount = make_discount(store, type='FIXED', value=Decimal('30.00'))
    assert DiscountService.calculate_discount(discount, Decimal('12.50')) == Decimal('12.50')


def test_free_shipping_discount(store):
    discount = make_discount(store, type='FREE_SHIPPING', value=Decimal('0'))
    assert DiscountService.calculate_discount(discount, Decimal('40.00'), Decimal('6.99')) == Decimal('6.99')


@pytest.mark.parametrize('extra, error', [
    ({'is_active': False}, 'This discount code is no longer active'),
    ({'max_uses': 2, 'used_count': 2}, 'This discount code has reached its usage limit'),
    ({'minimum_order_amount': Decimal('100.00')}, 'Minimum order amount of $100.00 required for this code'),
    ({'customer_emails': ['vip@mail.test']}, 'This discount code is not valid for your account'),
])
def test_code_rejections(store, extra, error):
    make_discount(store, **extra)
    discount, message = DiscountService(store).validate_code('SAVE10', Decimal('50.00'), 'someone@mail.test')
    assert discount is None
    assert message == error


def test_unknown_code(store):
    result = DiscountService(store).apply_code('NOPE', Decimal('10.00'))
    assert result['valid'] is False
    assert result['error'] == 'Invalid discount code'
    assert result['discounted_total'] == Decimal('10.00')


def test_code_window(store):
    now = timezone.now()
    make_discount(store, code='LATER', starts_at=now + timedelta(days=1))
    make_discount(store, code='GONE', expires_at=now - timedelta(days=1))
    service = DiscountService(store)

    assert service.validate_code('LATER', Decimal('10'))[1] == 'This discount code is not yet active'
    assert service.validate_code('GONE', Decimal('10'))[1] == 'This discount code has expired'


def test_per_customer_limit(store):
    make_discount(store, max_uses_per_customer=1)
    Order.objects.create(store=store, customer_email='repeat@mail.test', total=Decimal('20'), discount_code='SAVE10')
    service = DiscountService(store)

    _, error = service.validate_code('SAVE10', Decimal('50'), 'Repeat@Mail.test')
    assert error == 'You have already used this discount code the maximum number of times'
    assert service.validate_code('SAVE10', Decimal('50'), 'fresh@mail.test')[1] is None


def test_codes_are_store_scoped(store):
    other_store = make_store(make_user('rival@shop.test'), name='Rival Shop')
    make_discount(other_store)
    assert DiscountService(store).validate_code('SAVE10', Decimal('50'))[1] == 'Invalid discount code'


def test_increment_usage(store):
    discount = make_discount(store)
    DiscountService(store).increment_usage('save10')
    discount.refresh_from_db()
    assert discount.used_count == 1


def test_marketing_staff_manage_codes(client_for, store):
    marketer = make_user('marketer@shop.test')
    add_staff(store, marketer, role='MARKETING_MANAGER')
    client = client_for(marketer)

    response = client.post(
        f'/api/v1/stores/{store.pk}/discounts/',
        {'code': 'spring', 'name': 'Spring sale', 'type': 'PERCENTAGE', 'value': '15'},
        format='json',
    )

    assert response.status_code == 201
    assert DiscountCode.objects.get(store=store).code == 'SPRING'
    assert len(client.get(f'/api/v1/stores/{store.pk}/discounts/').data) == 1


def test_percentage_above_hundred_rejected(client_for, store, owner):
    response = client_for(owner).post(
        f'/api/v1/stores/{store.pk}/discounts/',
        {'code': 'HUGE', 'name': 'Too much', 'type': 'PERCENTAGE', 'value': '150'},
        format='json',
    )
    assert response.status_code == 400


def test_inventory_staff_cannot_manage_codes(client_for, store):
    stocker = make_user('stocker@shop.test')
    add_staff(store, stocker, role='INVENTORY_MANAGER')
    response = client_for(stocker).get(f'/api/v1/stores/{store.pk}/discounts/')
    assert response.status_code == 403


def test_shopper_validates_code(client_for, store, outsider):
    make_discount(store)

    response = client_for(outsider).post(
        f'/api/v1/stores/{store.pk}/discounts/validate/',
        {'code': 'save10', 'subtotal': '40.00'},
        format='json',
    )

    assert response.status_code == 200
    assert response.data['success'] is True
    assert response.data['data']['discount_amount'] == Decimal('4.00')


def test_validate_reports_failure_in_envelope(client_for, store, outsider):
    response = client_for(outsider).post(
        f'/api/v1/stores/{store.pk}/discounts/validate/',
        {'code': 'MISSING', 'subtotal': '40.00'},
        format='json',
    )
    assert response.status_code == 200
    assert response.data['success'] is False
    assert response.data['message'] == 'Invalid discount code'
