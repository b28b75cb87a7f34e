from rest_framework import serializers


class StoreAnalyticsSerializer(serializers.Serializer):
    """Store analytics overview data"""
    store_id = serializers.IntegerField()
    total_orders = serializers.IntegerField()
    orders_by_status = serializers.DictField(child=serializers.IntegerField())
    total_revenue = serializers.DecimalField(max_digits=12, decimal_places=2)
    average_order_value = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_products = serializers.IntegerField()
    active_products = serializers.IntegerField()
    low_stock_count = serializers.IntegerField()
    out_of_stock_count = serializers.IntegerField()
    top_products = serializers.ListField()
    revenue_trend = serializers.ListField()


class PlatformOverviewSerializer(serializers.Serializer):
    """Super admin console overview"""
    users_by_status = serializers.DictField(child=serializers.IntegerField())
    stores_by_plan = serializers.DictField(child=serializers.IntegerField())
    total_stores = serializers.IntegerField()
    open_role_requests = serializers.IntegerField()
    total_custom_roles = serializers.IntegerField()
    recent_activity = serializers.ListField()
