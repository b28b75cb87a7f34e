from django.contrib import admin

from .models import Order, OrderItem, DiscountCode


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('product', 'quantity', 'price')
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'store', 'customer_email', 'status', 'total', 'total_items', 'created_at')
    list_filter = ('status', 'created_at')
    search_fields = ('order_number', 'customer_email', 'store__name')
    readonly_fields = ('order_number', 'paid_at', 'shipped_at', 'delivered_at', 'canceled_at',
                       'created_at', 'updated_at')
    inlines = [OrderItemInline]

    def total_items(self, obj):
        return obj.total_items()
    total_items.short_description = 'Total Items'


@admin.register(DiscountCode)
class DiscountCodeAdmin(admin.ModelAdmin):
    list_display = ('code', 'store', 'type', 'value', 'used_count', 'max_uses', 'is_active', 'expires_at')
    list_filter = ('type', 'is_active')
    search_fields = ('code', 'name', 'store__name')
    readonly_fields = ('used_count', 'created_at', 'updated_at')
