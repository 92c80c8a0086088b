from rest_framework import serializers
from .models import Expense, ExpenseShare, SplitMode, ExpenseCategory
from apps.members.serializers import MemberMinimalSerializer


# =============================================================================
# Input Serializers
# =============================================================================

class ExpenseFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for expense filtering.

    Query Parameters:
        group (UUID): Filter by group ID
        payer (UUID): Filter by paying member
        category (str): Filter by category
    """

    group = serializers.UUIDField(required=False)
    payer = serializers.UUIDField(required=False)
    category = serializers.ChoiceField(choices=ExpenseCategory.choices, required=False)


class ExpenseCreateSerializer(serializers.Serializer):
    """
    Validate input for adding an expense.

    Fields:
        group (UUID): Group the expense belongs to
        description (str): What was paid for
        amount (Decimal): Positive amount
        payer (UUID): Paying member
        participants (list[UUID]): Members sharing the expense, all if omitted
        split_mode (str): equal, shares or percentage
        weights (dict): Member ID -> weight or percentage
        category (str): Expense category
        date (date): Day of the expense, today if omitted
    """

    group = serializers.UUIDField()
    description = serializers.CharField(max_length=255)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    payer = serializers.UUIDField()
    participants = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        allow_empty=True,
        help_text="Member IDs to split among. If not provided, splits among all group members."
    )
    split_mode = serializers.ChoiceField(choices=SplitMode.choices, default=SplitMode.EQUAL)
    weights = serializers.DictField(
        child=serializers.DecimalField(max_digits=9, decimal_places=4),
        required=False
    )
    category = serializers.ChoiceField(choices=ExpenseCategory.choices, default=ExpenseCategory.OTHER)
    date = serializers.DateField(required=False)

    def validate(self, attrs):
        if attrs['split_mode'] != SplitMode.EQUAL and not attrs.get('weights'):
            raise serializers.ValidationError({
                'weights': 'Weights are required for shares and percentage splits'
            })
        return attrs


class BudgetCheckSerializer(serializers.Serializer):
    group = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)


# =============================================================================
# Output Serializers
# =============================================================================

class ExpenseShareSerializer(serializers.ModelSerializer):
    """One participant's part of an expense."""

    member = MemberMinimalSerializer(read_only=True)

    class Meta:
        model = ExpenseShare
        fields = ['member', 'weight', 'amount']
        read_only_fields = fields


class ExpenseSerializer(serializers.ModelSerializer):
    """Main serializer for expenses."""

    payer = MemberMinimalSerializer(read_only=True)
    shares = ExpenseShareSerializer(many=True, read_only=True)
    currency = serializers.CharField(source='group.currency', read_only=True)

    class Meta:
        model = Expense
        fields = [
            'id',
            'group',
            'description',
            'amount',
            'currency',
            'payer',
            'split_mode',
            'category',
            'date',
            'shares',
            'created_at',
        ]
        read_only_fields = fields


class ExpenseListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for expense lists."""

    payer = MemberMinimalSerializer(read_only=True)
    participant_count = serializers.SerializerMethodField()

    class Meta:
        model = Expense
        fields = [
            'id',
            'group',
            'description',
            'amount',
            'payer',
            'category',
            'date',
            'participant_count',
        ]
        read_only_fields = fields

    def get_participant_count(self, obj):
        return len(obj.shares.all())


class ExpenseResultSerializer(serializers.Serializer):
    """Response for a newly added expense."""

    expense = ExpenseSerializer()
    over_budget = serializers.BooleanField()
    total_expenses = serializers.DecimalField(max_digits=12, decimal_places=2)
    message = serializers.CharField()
