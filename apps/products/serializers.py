from rest_framework import serializers

from apps.stores.models import Store
from .models import Category, Product, InventoryLog
from .services import ADJUSTMENT_TYPES


class CategorySerializer(serializers.ModelSerializer):
    parent = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(),
        required=False, allow_null=True,
    )
    children = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'store', 'name', 'slug', 'description', 'parent', 'children', 'is_active', 'created_at']
        read_only_fields = ['slug', 'created_at']

    def get_children(self, obj):
        return CategorySerializer(obj.get_children(), many=True).data

    def validate(self, data):
        parent = data.get('parent')
        store = data.get('store') or getattr(self.instance, 'store', None)
        if parent and parent.store_id != getattr(store, 'pk', None):
            raise serializers.ValidationError({'parent': 'Parent category belongs to another store.'})
        return data


class ProductSerializer(serializers.ModelSerializer):
    store = serializers.PrimaryKeyRelatedField(queryset=Store.objects.all())
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)

    class Meta:
        model = Product
        fields = [
            'id', 'store', 'category', 'category_name', 'name', 'slug', 'sku', 'description',
            'price', 'inventory_qty', 'low_stock_threshold', 'inventory_status',
            'sales_count', 'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['slug', 'inventory_status', 'sales_count', 'created_at', 'updated_at']

    def validate(self, data):
        category = data.get('category')
        store = data.get('store') or getattr(self.instance, 'store', None)
        if category and category.store_id != getattr(store, 'pk', None):
            raise serializers.ValidationError({'category': 'Category belongs to another store.'})
        return data

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative.")
        return value


class ProductUpdateSerializer(ProductSerializer):
    """Stock levels change through adjust-stock only"""
    store = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta(ProductSerializer.Meta):
        read_only_fields = ProductSerializer.Meta.read_only_fields + ['store', 'inventory_qty']


class StockAdjustmentSerializer(serializers.Serializer):
    quantity = serializers.IntegerField()
    type = serializers.ChoiceField(choices=ADJUSTMENT_TYPES)
    reason = serializers.ChoiceField(choices=InventoryLog.REASON_CHOICES, default='manual_adjustment')
    note = serializers.CharField(max_length=500, required=False, allow_blank=True)


class InventoryLogSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source='user.email', read_only=True, default=None)
    reason_label = serializers.CharField(source='get_reason_display', read_only=True)

    class Meta:
        model = InventoryLog
        fields = [
            'id', 'product', 'order', 'user_email', 'previous_qty', 'new_qty',
            'change_qty', 'reason', 'reason_label', 'note', 'created_at',
        ]
