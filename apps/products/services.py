import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.audit.services import AuditService
from .models import InventoryLog, Product

logger = logging.getLogger(__name__)

ADJUSTMENT_TYPES = ['ADD', 'REMOVE', 'SET']


def calculate_new_quantity(current_qty, quantity, adjustment_type, item_name=''):
    """Returns ``(new_qty, change_qty)`` for an ADD, REMOVE or SET adjustment."""
    if adjustment_type == 'ADD':
        return current_qty + quantity, quantity
    if adjustment_type == 'REMOVE':
        new_qty = current_qty - quantity
        if new_qty < 0:
            raise ValidationError(
                f'Cannot remove {quantity} units from "{item_name}". Current stock: {current_qty}'
            )
        return new_qty, -quantity
    if adjustment_type == 'SET':
        return quantity, quantity - current_qty
    raise ValidationError(f'Invalid adjustment type: {adjustment_type}')


def should_alert_low_stock(previous_qty, new_qty, threshold, previous_status, new_status):
    crossed_threshold = new_qty <= threshold < previous_qty
    left_in_stock = previous_status == 'IN_STOCK' and new_status in ('LOW_STOCK', 'OUT_OF_STOCK')
    return crossed_threshold or left_in_stock


class InventoryService:

    @staticmethod
    @transaction.atomic
    def adjust_stock(product, quantity, adjustment_type, reason='manual_adjustment', note='', user=None, order=None):
        if quantity < 0:
            raise ValidationError('Quantity must be non-negative')

        product = Product.objects.select_for_update().get(pk=product.pk)
        previous_qty = product.inventory_qty
        previous_status = product.inventory_status

        new_qty, change_qty = calculate_new_quantity(previous_qty, quantity, adjustment_type, product.name)
        new_status = Product.status_for_quantity(new_qty, product.low_stock_threshold)

        product.inventory_qty = new_qty
        product.inventory_status = new_status
        product.save(update_fields=['inventory_qty', 'inventory_status', 'updated_at'])

        InventoryLog.objects.create(
            store_id=product.store_id,
            product=product,
            order=order,
            user=user,
            previous_qty=previous_qty,
            new_qty=new_qty,
            change_qty=change_qty,
            reason=reason,
            note=note or '',
        )

        if should_alert_low_stock(previous_qty, new_qty, product.low_stock_threshold, previous_status, new_status):
            AuditService.log(
                action='low_stock_alert',
                entity_type='Product',
                entity_id=product.pk,
                store_id=product.store_id,
                changes={
                    'type': 'low_stock_alert',
                    'product_id': product.pk,
                    'current_stock': new_qty,
                    'threshold': product.low_stock_threshold,
                    'timestamp': timezone.now().isoformat(),
                },
            )
            logger.warning(f"Low stock for product {product.pk} in store {product.store_id}: {new_qty} left")

        return product
