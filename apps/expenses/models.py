from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class SplitMode(models.TextChoices):
    EQUAL = 'equal', 'Equal'
    SHARES = 'shares', 'Shares'
    PERCENTAGE = 'percentage', 'Percentage'


class ExpenseCategory(models.TextChoices):
    FOOD = 'food', 'Food'
    ACCOMMODATION = 'accommodation', 'Accommodation'
    TRANSPORT = 'transport', 'Transport'
    ENTERTAINMENT = 'entertainment', 'Entertainment'
    OTHER = 'other', 'Other'


class Expense(models.Model):
    """An expense paid by one member and split among participants. Immutable."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        related_name='expenses'
    )
    payer = models.ForeignKey(
        'members.Member',
        on_delete=models.PROTECT,
        related_name='paid_expenses'
    )

    description = models.CharField(max_length=255)
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    split_mode = models.CharField(
        max_length=20,
        choices=SplitMode.choices,
        default=SplitMode.EQUAL
    )
    category = models.CharField(
        max_length=20,
        choices=ExpenseCategory.choices,
        default=ExpenseCategory.OTHER
    )

    # Order of insertion within the group
    position = models.PositiveIntegerField(default=0)

    date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'expenses'
        indexes = [
            models.Index(fields=['group', 'position'], name='expenses_group_position_idx'),
            models.Index(fields=['payer', 'date'], name='expenses_payer_date_idx'),
            models.Index(fields=['group', 'category'], name='expenses_group_category_idx'),
        ]
        ordering = ['group', 'position']

    def __str__(self):
        return f"{self.description} - {self.amount} {self.group.currency} paid by {self.payer.name}"

    @property
    def participant_ids(self):
        return [share.member_id for share in self.shares.all()]


class ExpenseShare(models.Model):
    """One participant's owed part of an expense."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    expense = models.ForeignKey(
        Expense,
        on_delete=models.CASCADE,
        related_name='shares'
    )
    member = models.ForeignKey(
        'members.Member',
        on_delete=models.PROTECT,
        related_name='expense_shares'
    )

    # Weight or percentage as entered (None for equal splits)
    weight = models.DecimalField(max_digits=9, decimal_places=4, null=True, blank=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'expense_shares'
        unique_together = [['expense', 'member']]
        indexes = [
            models.Index(fields=['member'], name='expense_shares_member_idx'),
        ]
        ordering = ['expense', 'position']

    def __str__(self):
        return f"{self.member.name} owes {self.amount} for '{self.expense.description}'"
