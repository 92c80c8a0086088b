from rest_framework import serializers
from .models import ChatMessage


class MessageFilterSerializer(serializers.Serializer):
    group = serializers.UUIDField()


class MessageCreateSerializer(serializers.Serializer):
    """
    Validate input for posting a message.

    Fields:
        group (UUID): Target group
        content (str): Message text
    """

    group = serializers.UUIDField()
    content = serializers.CharField(max_length=2000)


class ChatMessageSerializer(serializers.ModelSerializer):
    """Message for display."""

    id = serializers.UUIDField(source='reference', read_only=True)
    sender = serializers.UUIDField(source='sender_id', read_only=True)

    class Meta:
        model = ChatMessage
        fields = [
            'id',
            'group',
            'sender',
            'sender_name',
            'content',
            'kind',
            'related_expense',
            'timestamp',
        ]
        read_only_fields = fields
