# users/serializers.py
from rest_framework import serializers


class SessionSerializer(serializers.Serializer):
    uid = serializers.CharField(read_only=True)
    display_name = serializers.CharField(read_only=True)
    email = serializers.CharField(read_only=True)
    photo_url = serializers.CharField(read_only=True)
    is_admin = serializers.BooleanField(read_only=True)
    is_super_admin = serializers.BooleanField(read_only=True)


class PresenceSerializer(serializers.Serializer):
    is_online = serializers.BooleanField(read_only=True)
    last_seen = serializers.CharField(read_only=True)
    last_active = serializers.DateTimeField(read_only=True, allow_null=True)
