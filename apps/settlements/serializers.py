from rest_framework import serializers
from .models import Transaction, TransactionStatus
from apps.members.serializers import MemberMinimalSerializer


# =============================================================================
# Input Serializers
# =============================================================================

class TransactionFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for transaction filtering.

    Query Parameters:
        group (UUID): Only transactions of this group
        status (str): Filter by status
    """

    group = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=TransactionStatus.choices, required=False)


class SendMoneySerializer(serializers.Serializer):
    to_member = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class RequestMoneySerializer(serializers.Serializer):
    from_member = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class SettleUpInputSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


# =============================================================================
# Output Serializers
# =============================================================================

class TransactionSerializer(serializers.ModelSerializer):
    """Transaction for display."""

    id = serializers.UUIDField(source='reference', read_only=True)
    from_member = MemberMinimalSerializer(read_only=True)
    to_member = MemberMinimalSerializer(read_only=True)

    class Meta:
        model = Transaction
        fields = [
            'id',
            'group',
            'from_member',
            'to_member',
            'amount',
            'kind',
            'status',
            'description',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class PlannedTransferSerializer(serializers.Serializer):
    """Settle-up transaction that has not been written yet."""

    from_member = MemberMinimalSerializer()
    to_member = MemberMinimalSerializer()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    kind = serializers.CharField()
    status = serializers.CharField()
