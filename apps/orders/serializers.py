from decimal import Decimal

from rest_framework import serializers
from .models import Order, OrderItem, DiscountCode


class OrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    subtotal = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'product_name', 'quantity', 'price', 'subtotal']
        read_only_fields = ['id', 'product', 'price']


class OrderListSerializer(serializers.ModelSerializer):
    """Serializer for listing orders with basic information"""
    item_count = serializers.SerializerMethodField()
    store_name = serializers.CharField(source='store.name', read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'store', 'store_name', 'status', 'customer_email',
            'customer_name', 'total', 'item_count', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_item_count(self, obj):
        return obj.items.count()


class OrderDetailSerializer(serializers.ModelSerializer):
    """Detailed serializer for viewing single order with all information"""
    items = OrderItemSerializer(many=True, read_only=True)
    store_name = serializers.CharField(source='store.name', read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'store', 'store_name',
            # Customer information
            'customer_email', 'customer_name',
            # Order status
            'status', 'tracking_number', 'admin_note',
            # Financial
            'subtotal', 'shipping_amount', 'discount_code', 'discount_amount', 'total',
            # Items
            'items',
            # Timestamps
            'paid_at', 'shipped_at', 'delivered_at', 'canceled_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False)
    tracking_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    admin_note = serializers.CharField(required=False, allow_blank=True)


class DiscountCodeSerializer(serializers.ModelSerializer):
    class Meta:
        model = DiscountCode
        fields = [
            'id', 'store', 'code', 'name', 'description', 'type', 'value',
            'minimum_order_amount', 'max_discount_amount', 'max_uses',
            'max_uses_per_customer', 'used_count', 'customer_emails',
            'starts_at', 'expires_at', 'is_active', 'created_at',
        ]
        read_only_fields = ['store', 'used_count', 'created_at']

    def validate(self, data):
        discount_type = data.get('type', getattr(self.instance, 'type', None))
        value = data.get('value', getattr(self.instance, 'value', None))
        if value is not None and value < 0:
            raise serializers.ValidationError({'value': 'Value cannot be negative.'})
        if discount_type == 'PERCENTAGE' and value is not None and value > 100:
            raise serializers.ValidationError({'value': 'Percentage discounts cannot exceed 100.'})
        return data


class DiscountValidateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    subtotal = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))
    shipping_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), default=Decimal('0'))
    customer_email = serializers.EmailField(required=False, allow_blank=True)
