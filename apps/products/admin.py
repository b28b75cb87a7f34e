from django.contrib import admin
from mptt.admin import MPTTModelAdmin

from .models import Category, Product, InventoryLog


@admin.register(Category)
class CategoryAdmin(MPTTModelAdmin):
    list_display = ('name', 'store', 'is_active', 'created_at')
    list_filter = ('is_active', 'created_at')
    search_fields = ('name', 'description')
    prepopulated_fields = {'slug': ('name',)}


class InventoryLogInline(admin.TabularInline):
    model = InventoryLog
    extra = 0
    can_delete = False
    readonly_fields = ('previous_qty', 'new_qty', 'change_qty', 'reason', 'note', 'user', 'order', 'created_at')
    fk_name = 'product'


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'store', 'sku', 'price', 'inventory_qty', 'inventory_status', 'is_active')
    list_filter = ('inventory_status', 'is_active')
    search_fields = ('name', 'sku', 'store__name')
    readonly_fields = ('inventory_status', 'sales_count', 'created_at', 'updated_at')
    inlines = [InventoryLogInline]


@admin.register(InventoryLog)
class InventoryLogAdmin(admin.ModelAdmin):
    list_display = ('product', 'store', 'previous_qty', 'new_qty', 'change_qty', 'reason', 'created_at')
    list_filter = ('reason',)
    search_fields = ('product__name', 'note')
    readonly_fields = [field.name for field in InventoryLog._meta.fields]
