from django.db import models
from django.conf import settings
from django.utils.text import slugify
from mptt.models import MPTTModel, TreeForeignKey


class Category(MPTTModel):
    store = models.ForeignKey('stores.Store', on_delete=models.CASCADE, related_name='categories')
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100)
    description = models.TextField(blank=True)
    parent = TreeForeignKey('self', on_delete=models.CASCADE, null=True, blank=True, related_name='children')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class MPTTMeta:
        order_insertion_by = ['name']

    class Meta:
        verbose_name_plural = 'Categories'
        unique_together = ('store', 'slug')

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class Product(models.Model):
    INVENTORY_STATUS_CHOICES = [
        ('IN_STOCK', 'In stock'),
        ('LOW_STOCK', 'Low stock'),
        ('OUT_OF_STOCK', 'Out of stock'),
    ]

    store = models.ForeignKey('stores.Store', on_delete=models.CASCADE, related_name='products')
    category = models.ForeignKey(
        Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products'
    )
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100)
    sku = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    inventory_qty = models.PositiveIntegerField(default=0)
    low_stock_threshold = models.PositiveIntegerField(default=5)
    inventory_status = models.CharField(max_length=20, choices=INVENTORY_STATUS_CHOICES, default='OUT_OF_STOCK')
    sales_count = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('store', 'slug')
        ordering = ['-created_at']
        indexes = [models.Index(fields=['store', 'inventory_status'])]

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        if self._state.adding:
            self.inventory_status = self.status_for_quantity(self.inventory_qty, self.low_stock_threshold)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} - {self.price}"

    @staticmethod
    def status_for_quantity(quantity, low_stock_threshold):
        if quantity == 0:
            return 'OUT_OF_STOCK'
        if quantity <= low_stock_threshold:
            return 'LOW_STOCK'
        return 'IN_STOCK'

    @property
    def is_in_stock(self):
        return self.inventory_qty > 0

    @property
    def is_low_stock(self):
        return 0 < self.inventory_qty <= self.low_stock_threshold


class InventoryLog(models.Model):
    """
    One row per stock movement
    """
    REASON_CHOICES = [
        ('order_created', 'Order Created'),
        ('order_cancelled', 'Order Cancelled'),
        ('return_processed', 'Return Processed'),
        ('manual_adjustment', 'Manual Adjustment'),
        ('damaged', 'Damaged'),
        ('lost', 'Lost'),
        ('found', 'Found'),
        ('stock_transfer', 'Stock Transfer'),
        ('restock', 'Restock'),
        ('inventory_count', 'Inventory Count'),
        ('expired', 'Expired'),
        ('theft', 'Theft'),
    ]

    store = models.ForeignKey('stores.Store', on_delete=models.CASCADE, related_name='inventory_logs')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='inventory_logs')
    order = models.ForeignKey(
        'orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_logs'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_logs'
    )
    previous_qty = models.IntegerField()
    new_qty = models.IntegerField()
    change_qty = models.IntegerField()
    reason = models.CharField(max_length=30, choices=REASON_CHOICES)
    note = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['store', 'created_at'])]

    def __str__(self):
        return f"{self.product.name}: {self.previous_qty} -> {self.new_qty} ({self.reason})"
