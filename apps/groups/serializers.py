from rest_framework import serializers
from .models import Group, GroupMember
from apps.members.serializers import MemberMinimalSerializer


# =============================================================================
# Input Serializers
# =============================================================================

class GroupCreateSerializer(serializers.Serializer):
    """
    Validate input for creating a group.

    Fields:
        name (str): Group name
        members (list[UUID]): Catalog members, in display order
        owner (UUID): Member settling the group, defaults to the caller
        budget (Decimal): Optional soft budget
        currency (str): Currency code
        color (str): Display color (#RRGGBB)
    """

    name = serializers.CharField(max_length=200)
    members = serializers.ListField(child=serializers.UUIDField(), min_length=2)
    owner = serializers.UUIDField(required=False)
    budget = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    currency = serializers.CharField(max_length=3, required=False)
    color = serializers.RegexField(r'^#[0-9A-Fa-f]{6}$', required=False)


class GroupUpdateSerializer(serializers.Serializer):
    """Fields that may change while a group is open."""

    name = serializers.CharField(max_length=200, required=False)
    budget = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    color = serializers.RegexField(r'^#[0-9A-Fa-f]{6}$', required=False)


# =============================================================================
# Output Serializers
# =============================================================================

class GroupMemberSerializer(serializers.ModelSerializer):
    """A member inside a group with the running balance."""

    member = MemberMinimalSerializer(read_only=True)
    is_owner = serializers.BooleanField(read_only=True)

    class Meta:
        model = GroupMember
        fields = ['member', 'balance', 'position', 'is_owner', 'joined_at']
        read_only_fields = fields


class GroupSerializer(serializers.ModelSerializer):
    """Main serializer for groups."""

    owner = MemberMinimalSerializer(read_only=True)
    members = GroupMemberSerializer(source='memberships', many=True, read_only=True)
    total_expenses = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Group
        fields = [
            'id',
            'name',
            'owner',
            'budget',
            'currency',
            'color',
            'closed',
            'closed_at',
            'total_expenses',
            'members',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class GroupListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    owner = MemberMinimalSerializer(read_only=True)
    member_count = serializers.SerializerMethodField()
    total_expenses = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Group
        fields = [
            'id',
            'name',
            'owner',
            'member_count',
            'budget',
            'currency',
            'color',
            'closed',
            'total_expenses',
            'created_at',
        ]
        read_only_fields = fields

    def get_member_count(self, obj):
        return len(obj.memberships.all())


class GroupSummarySerializer(serializers.Serializer):
    """Totals, budget usage and spending per category."""

    total_expenses = serializers.DecimalField(max_digits=12, decimal_places=2)
    expense_count = serializers.IntegerField()
    budget = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    remaining_budget = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    budget_used_percent = serializers.IntegerField(allow_null=True)
    over_budget = serializers.BooleanField()
    by_category = serializers.DictField(
        child=serializers.DecimalField(max_digits=12, decimal_places=2)
    )
    balances = GroupMemberSerializer(many=True)
