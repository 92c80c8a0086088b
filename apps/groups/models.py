# ==========================================
# apps/groups/models.py
# ==========================================

from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Sum
import uuid


def default_currency():
    return settings.LEDGER_DEFAULT_CURRENCY


class Group(models.Model):
    """Expense-sharing group with its running ledger."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    owner = models.ForeignKey(
        'members.Member',
        on_delete=models.PROTECT,
        related_name='owned_groups'
    )

    # Soft budget (None or 0 means no budget)
    budget = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    currency = models.CharField(max_length=3, default=default_currency)
    color = models.CharField(max_length=7, default='#FF9AA2')

    # Terminal state reached through settle-up
    closed = models.BooleanField(default=False)
    closed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'groups'
        indexes = [
            models.Index(fields=['owner', 'created_at'], name='groups_owner_created_idx'),
            models.Index(fields=['closed'], name='groups_closed_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    @property
    def total_expenses(self):
        """Sum of all expense amounts (derived, never stored)."""
        total = self.expenses.aggregate(total=Sum('amount'))['total']
        return total or Decimal('0.00')

    def has_budget(self):
        return self.budget is not None and self.budget > 0

    def remaining_budget(self):
        if not self.has_budget():
            return None
        return self.budget - self.total_expenses

    def is_over_budget(self, total=None):
        if not self.has_budget():
            return False
        if total is None:
            total = self.total_expenses
        return total > self.budget

    def has_user(self, user):
        return self.memberships.filter(member__user=user).exists()


class GroupMember(models.Model):
    """A catalog member inside a group, carrying the running balance."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='memberships')
    member = models.ForeignKey(
        'members.Member',
        on_delete=models.PROTECT,
        related_name='group_memberships'
    )

    # Positive: owed money. Negative: owes money.
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    position = models.PositiveIntegerField(default=0)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'group_members'
        unique_together = [['group', 'member']]
        indexes = [
            models.Index(fields=['group', 'position'], name='group_members_position_idx'),
        ]
        ordering = ['group', 'position']

    def __str__(self):
        return f"{self.member.name} in {self.group.name} ({self.balance} {self.group.currency})"

    @property
    def is_owner(self):
        return self.group.owner_id == self.member_id
