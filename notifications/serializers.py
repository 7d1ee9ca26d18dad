# notifications/serializers.py
from rest_framework import serializers


class NotificationSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    content = serializers.CharField(read_only=True)
    link = serializers.CharField(read_only=True)
    read = serializers.BooleanField(read_only=True)
    timestamp = serializers.DateTimeField(read_only=True, allow_null=True)


class NotificationUpdateSerializer(serializers.Serializer):
    read = serializers.BooleanField()

    def validate_read(self, value):
        # unread -> read is the only transition
        if value is not True:
            raise serializers.ValidationError("Notifications can only be marked as read.")
        return value


class BroadcastSerializer(serializers.Serializer):
    recipient_ids = serializers.ListField(
        child=serializers.CharField(), allow_empty=False
    )
    content = serializers.CharField(max_length=500)
    link = serializers.CharField(max_length=500, default="/notifications")
