from rest_framework import serializers
from .models import Member


class MemberSerializer(serializers.ModelSerializer):
    """Catalog member for display."""

    initial = serializers.SerializerMethodField()

    class Meta:
        model = Member
        fields = ['id', 'name', 'contact_id', 'initial', 'created_at']
        read_only_fields = fields

    def get_initial(self, obj):
        return obj.get_initial()


class MemberMinimalSerializer(serializers.ModelSerializer):
    """Minimal member info for nested serialization."""

    class Meta:
        model = Member
        fields = ['id', 'name']
        read_only_fields = fields


class MemberSearchSerializer(serializers.Serializer):
    """
    Validate query parameters for member search.

    Query Parameters:
        q (str): Text to match against names and contact ids
        threshold (int): Minimum similarity score (0-100)
    """

    q = serializers.CharField(max_length=100)
    threshold = serializers.IntegerField(min_value=0, max_value=100, required=False)


class MemberSearchResultSerializer(serializers.Serializer):
    member = MemberSerializer()
    score = serializers.IntegerField()
