from rest_framework import serializers
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """
    Serializer for Notification model
    """

    class Meta:
        model = Notification
        fields = [
            'id', 'type', 'title', 'message', 'data', 'read', 'read_at',
            'action_url', 'action_label', 'created_at'
        ]
        read_only_fields = fields
