import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.notifications.services import NotificationService
from .models import DiscountCode, Order

logger = logging.getLogger(__name__)

ORDER_STATUS_TRANSITIONS = {
    'PENDING': ['PAID', 'PAYMENT_FAILED', 'PROCESSING', 'CANCELED'],
    'PAYMENT_FAILED': ['PENDING', 'PAID', 'CANCELED'],
    'PAID': ['PROCESSING', 'SHIPPED', 'CANCELED', 'REFUNDED'],
    'PROCESSING': ['SHIPPED', 'DELIVERED', 'CANCELED', 'REFUNDED'],
    'SHIPPED': ['DELIVERED', 'CANCELED', 'REFUNDED'],
    'DELIVERED': ['REFUNDED'],
    'CANCELED': ['PENDING', 'REFUNDED'],
    'REFUNDED': [],
}

STATUS_TIMESTAMPS = {
    'PAID': 'paid_at',
    'SHIPPED': 'shipped_at',
    'DELIVERED': 'delivered_at',
    'CANCELED': 'canceled_at',
}

TWO_PLACES = Decimal('0.01')


def is_valid_status_transition(current_status, new_status):
    # Same status is accepted so tracking details can be updated on their own
    if current_status == new_status:
        return True
    return new_status in ORDER_STATUS_TRANSITIONS.get(current_status, [])


class OrderService:

    @staticmethod
    @transaction.atomic
    def update_status(order, new_status=None, tracking_number=None, admin_note=None):
        order = Order.objects.select_for_update().get(pk=order.pk)
        previous_status = order.status

        if new_status and not is_valid_status_transition(previous_status, new_status):
            raise ValidationError(f'Invalid status transition from {previous_status} to {new_status}')

        if tracking_number is not None:
            order.tracking_number = tracking_number
        if admin_note is not None:
            order.admin_note = admin_note

        changed = bool(new_status) and new_status != previous_status
        if changed:
            order.status = new_status
            timestamp_field = STATUS_TIMESTAMPS.get(new_status)
            if timestamp_field:
                setattr(order, timestamp_field, timezone.now())

        order.save()

        if changed:
            logger.info(f"Order {order.order_number} moved from {previous_status} to {new_status}")
            if order.user_id:
                NotificationService().notify(
                    order.user,
                    'ORDER_STATUS_CHANGED',
                    'Order Update',
                    f'Your order {order.order_number} is now {order.get_status_display().lower()}.',
                    data={'order_id': order.pk, 'status': new_status, 'previous_status': previous_status},
                )
        return order


def _money(value):
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class DiscountService:
    """
    Discount code validation and application for one store.
    """

    def __init__(self, store):
        self.store = store

    def validate_code(self, code, order_subtotal, customer_email=None):
        """
        Returns ``(discount, error)``. ``discount`` is None when the code
        cannot be used and ``error`` says why.
        """
        normalized = code.strip().upper()
        discount = DiscountCode.objects.filter(store=self.store, code=normalized).first()
        if discount is None:
            return None, 'Invalid discount code'

        if not discount.is_active:
            return None, 'This discount code is no longer active'

        now = timezone.now()
        if discount.starts_at > now:
            return None, 'This discount code is not yet active'
        if discount.expires_at and discount.expires_at < now:
            return None, 'This discount code has expired'

        if discount.max_uses is not None and discount.used_count >= discount.max_uses:
            return None, 'This discount code has reached its usage limit'

        if discount.minimum_order_amount is not None and Decimal(order_subtotal) < discount.minimum_order_amount:
            return None, f'Minimum order amount of ${discount.minimum_order_amount:.2f} required for this code'

        email = customer_email.strip().lower() if customer_email else None
        if discount.customer_emails and (not email or email not in discount.customer_emails):
            return None, 'This discount code is not valid for your account'

        if email and discount.max_uses_per_customer > 0:
            used = Order.objects.filter(
                store=self.store, discount_code=normalized, customer_email__iexact=email
            ).count()
            if used >= discount.max_uses_per_customer:
                return None, 'You have already used this discount code the maximum number of times'

        return discount, None

    @staticmethod
    def calculate_discount(discount, order_subtotal, shipping_amount=0):
        subtotal = Decimal(order_subtotal)
        if discount.type == 'PERCENTAGE':
            amount = subtotal * discount.value / 100
            if discount.max_discount_amount is not None:
                amount = min(amount, discount.max_discount_amount)
        elif discount.type == 'FIXED':
            amount = min(discount.value, subtotal)
        elif discount.type == 'FREE_SHIPPING':
            amount = Decimal(shipping_amount)
        else:
            amount = Decimal('0')
        return _money(amount)

    def apply_code(self, code, order_subtotal, shipping_amount=0, customer_email=None):
        original_total = _money(Decimal(order_subtotal) + Decimal(shipping_amount))
        discount, error = self.validate_code(code, order_subtotal, customer_email)
        if discount is None:
            return {
                'valid': False,
                'error': error,
                'discount_amount': Decimal('0.00'),
                'original_total': original_total,
                'discounted_total': original_total,
            }

        discount_amount = self.calculate_discount(discount, order_subtotal, shipping_amount)
        return {
            'valid': True,
            'discount_amount': discount_amount,
            'original_total': original_total,
            'discounted_total': max(Decimal('0.00'), original_total - discount_amount),
            'discount': {
                'code': discount.code,
                'type': discount.type,
                'value': discount.value,
                'description': discount.description,
            },
        }

    def increment_usage(self, code):
        return DiscountCode.objects.filter(
            store=self.store, code=code.strip().upper()
        ).update(used_count=F('used_count') + 1)
