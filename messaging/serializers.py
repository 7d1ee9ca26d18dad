# messaging/serializers.py
from rest_framework import serializers


class ReplySerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    sender_id = serializers.CharField(read_only=True)
    sender_name = serializers.CharField(source="display_name", read_only=True)
    sender_photo_url = serializers.CharField(read_only=True)
    sender_type = serializers.CharField(source="sender_role.value", read_only=True)
    text = serializers.CharField(read_only=True)
    timestamp = serializers.DateTimeField(read_only=True, allow_null=True)


class ReplyCreateSerializer(serializers.Serializer):
    text = serializers.CharField(max_length=5000, trim_whitespace=True)


class ReactionSerializer(serializers.Serializer):
    emoji = serializers.CharField(max_length=32, trim_whitespace=True)


class MessageCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    message = serializers.CharField(max_length=5000)


class CommentSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    fan_id = serializers.CharField(source="owner_id", read_only=True, allow_null=True)
    username = serializers.CharField(read_only=True)
    photo_url = serializers.CharField(read_only=True)
    content = serializers.CharField(source="body", read_only=True)
    comment_date = serializers.DateTimeField(source="created_at", read_only=True, allow_null=True)
    music_id = serializers.CharField(source="track_id", read_only=True)
    provisional = serializers.SerializerMethodField()
    likes = serializers.ListField(child=serializers.CharField(), read_only=True)
    reactions = serializers.SerializerMethodField()
    replies = ReplySerializer(many=True, read_only=True)

    def get_provisional(self, comment):
        return not comment.is_confirmed

    def get_reactions(self, comment):
        return comment.reactions.as_dict()


class CommentCreateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=2000)
    client_token = serializers.CharField(max_length=64, required=False)
