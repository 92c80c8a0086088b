"""
Expense Ledger Services Module
==============================

Business logic for recording expenses in a group and keeping every
member's running balance in step.

Every mutation locks the group row (``select_for_update``) inside one
database transaction and runs all checks before its first write, so a
rejected expense leaves no trace.

Classes:
    ExpenseResult: Outcome of a successful add_expense call.
    ExpenseLedgerService: Expense creation, budget checks, summaries and
        balance audits.

Example:
    Recording a dinner paid by the group owner::

        from apps.expenses.services import ExpenseLedgerService
        from decimal import Decimal

        result = ExpenseLedgerService.add_expense(
            group_id=group.id,
            description='Dinner',
            amount=Decimal('90.00'),
            payer_id=owner.id,
            category='food',
        )

        if result.over_budget:
            print("Budget exceeded")
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from apps.chat.models import ChatMessage
from apps.chat.services import post_system_message
from apps.groups.models import Group, GroupMember
from apps.groups.services import (
    GroupClosedError,
    get_group_by_id,
    lock_group,
    member_key,
    resolve_group_members,
)

from .exceptions import InvalidAmountError, InvalidExpenseError, InvalidSplitError
from .models import Expense, ExpenseCategory, ExpenseShare, SplitMode
from .splitting import MAX_AMOUNT, clean_amount, compute_shares

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
MAX_DESCRIPTION_LENGTH = Expense._meta.get_field('description').max_length


@dataclass
class ExpenseResult:
    group: Group
    expense: Expense
    shares: List[ExpenseShare]
    over_budget: bool
    message: ChatMessage


class ExpenseLedgerService:
    """
    Service for adding expenses to a group ledger.

    Methods:
        add_expense: Record an expense and update balances.
        would_exceed_budget: Ask whether an amount would pass the budget.
        get_group_summary: Totals, budget usage and spending per category.
        recalculate_balances: Derive balances from recorded shares.
    """

    @staticmethod
    def add_expense(
        *,
        group_id,
        description,
        amount,
        payer_id,
        participant_ids=None,
        split_mode=SplitMode.EQUAL,
        weights=None,
        category=ExpenseCategory.OTHER,
        date=None,
    ):
        """
        Record an expense and apply it to the running balances.

        The payer's balance grows by the full amount and every participant's
        balance shrinks by their share. Shares come from compute_shares and
        always sum exactly to the amount, so balances keep summing to zero.

        Args:
            group_id (UUID): Group the expense belongs to.
            description (str): What was paid for.
            amount (Decimal): Positive amount with at most two decimals.
            payer_id (UUID): Catalog ID of the paying group member.
            participant_ids (list[UUID], optional): Members sharing the
                expense. None means all group members.
            split_mode (str): ``equal``, ``shares`` or ``percentage``.
            weights (dict, optional): Member ID -> weight or percentage.
            category (str): Expense category. Defaults to ``other``.
            date (date, optional): Day of the expense. Defaults to today.

        Returns:
            ExpenseResult: The group, created expense, its shares, the
            budget flag and the posted system message.

        Raises:
            GroupNotFoundError: If the group doesn't exist.
            GroupClosedError: If the group is already settled.
            InvalidExpenseError: Blank or overlong description, or unknown
                category.
            InvalidAmountError: Non-positive, sub-cent or oversized amount, or
                a resulting balance too large to store.
            UnknownMemberError: Payer or a participant is not in the group.
            InvalidSplitError: Empty participants or unusable weights.
        """
        with transaction.atomic():
            group = lock_group(group_id=group_id)

            if group.closed:
                logger.warning("Rejected expense on closed group %s", group.id)
                raise GroupClosedError(f"Group '{group.name}' is closed")

            description = (description or '').strip()
            if not description:
                raise InvalidExpenseError("Expense description is required")
            if len(description) > MAX_DESCRIPTION_LENGTH:
                raise InvalidExpenseError(
                    f"Expense description is longer than {MAX_DESCRIPTION_LENGTH} characters"
                )
            if category not in ExpenseCategory.values:
                raise InvalidExpenseError(f"Unknown category: {category!r}")

            amount = clean_amount(amount)

            payer_key = member_key(payer_id)
            if participant_ids is None:
                participant_keys = [
                    member_key(gm.member_id)
                    for gm in group.memberships.order_by('position')
                ]
            else:
                participant_keys = [member_key(pid) for pid in participant_ids]
                if not participant_keys:
                    raise InvalidSplitError("At least one participant required")

            memberships = resolve_group_members(group, [payer_key] + participant_keys)

            if weights is not None:
                weights = {member_key(key): value for key, value in weights.items()}

            owed = compute_shares(amount, participant_keys, split_mode, weights)

            deltas = {payer_key: amount}
            for key, share in owed.items():
                deltas[key] = deltas.get(key, ZERO) - share

            for key, delta in deltas.items():
                if abs(memberships[key].balance + delta) > MAX_AMOUNT:
                    raise InvalidAmountError(
                        f"Balance of {memberships[key].member.name} would exceed {MAX_AMOUNT}"
                    )

            # All checks passed; from here on only writes
            expense = Expense.objects.create(
                group=group,
                payer=memberships[payer_key].member,
                description=description,
                amount=amount,
                split_mode=split_mode,
                category=category,
                position=Expense.objects.filter(group=group).count(),
                date=date or timezone.localdate(),
            )

            shares = ExpenseShare.objects.bulk_create([
                ExpenseShare(
                    expense=expense,
                    member=memberships[key].member,
                    weight=(
                        None if split_mode == SplitMode.EQUAL
                        else Decimal(str(weights[key]))
                    ),
                    amount=share,
                    position=index,
                )
                for index, (key, share) in enumerate(owed.items())
            ])

            for key, delta in deltas.items():
                membership = memberships[key]
                membership.balance += delta
                membership.save(update_fields=['balance'])

            payer = memberships[payer_key].member
            message = post_system_message(
                group=group,
                content=f"{payer.name} paid {amount} {group.currency} for {description}",
                related_expense=expense,
            )

            group.save(update_fields=['updated_at'])

            total = ExpenseLedgerService._total(group)
            over_budget = group.is_over_budget(total)

        logger.info(
            "Expense %s added to group %s: %s %s paid by %s, split %s among %d",
            expense.id, group.id, amount, group.currency, payer.name,
            split_mode, len(owed)
        )
        if over_budget:
            logger.warning(
                "Group %s is over budget: %s of %s %s",
                group.id, total, group.budget, group.currency
            )

        return ExpenseResult(
            group=group,
            expense=expense,
            shares=shares,
            over_budget=over_budget,
            message=message,
        )

    @staticmethod
    def _total(group):
        return (
            Expense.objects.filter(group=group).aggregate(total=Sum('amount'))['total']
            or ZERO
        )

    @staticmethod
    def would_exceed_budget(group, amount):
        """
        Check whether adding ``amount`` would take the group past its budget.

        Groups without a positive budget never exceed it.
        """
        if not group.has_budget():
            return False
        projected = ExpenseLedgerService._total(group) + clean_amount(amount)
        return projected > group.budget

    @staticmethod
    def get_group_summary(*, group_id):
        """
        Get totals, budget usage and spending per category for a group.

        Returns:
            dict: A dictionary containing:
                - group (Group): The group.
                - total_expenses (Decimal): Sum of all expense amounts.
                - expense_count (int): Number of expenses.
                - budget (Decimal | None): The soft budget.
                - remaining_budget (Decimal | None): Budget minus total.
                - budget_used_percent (int | None): Rounded usage percent.
                - over_budget (bool): Whether the total passed the budget.
                - by_category (dict): Category -> total, every category listed.
                - balances (list[GroupMember]): Members in display order.

        Raises:
            GroupNotFoundError: If the group doesn't exist.
        """
        group = get_group_by_id(group_id=group_id)

        by_category = {category: ZERO for category in ExpenseCategory.values}
        rows = (
            Expense.objects
            .filter(group=group)
            .values('category')
            .annotate(total=Sum('amount'))
        )
        for row in rows:
            by_category[row['category']] = row['total']

        total = sum(by_category.values(), ZERO)

        remaining = None
        used_percent = None
        if group.has_budget():
            remaining = group.budget - total
            used_percent = int((total * 100 / group.budget).to_integral_value())

        return {
            'group': group,
            'total_expenses': total,
            'expense_count': Expense.objects.filter(group=group).count(),
            'budget': group.budget,
            'remaining_budget': remaining,
            'budget_used_percent': used_percent,
            'over_budget': group.is_over_budget(total),
            'by_category': by_category,
            'balances': list(group.memberships.all()),
        }

    @staticmethod
    def recalculate_balances(*, group_id, apply=False):
        """
        Derive every member's balance from the recorded expense shares.

        Closed groups derive to zero for everyone, since settle-up zeroed
        them. With ``apply=True`` the stored balances are overwritten with
        the derived ones.

        Returns:
            dict: Member ID (str) -> dict with ``stored``, ``derived`` and
            ``drift`` (stored minus derived) Decimals.

        Raises:
            GroupNotFoundError: If the group doesn't exist.
        """
        with transaction.atomic():
            group = lock_group(group_id=group_id)
            memberships = list(
                GroupMember.objects.filter(group=group).select_related('member')
            )

            derived = {member_key(gm.member_id): ZERO for gm in memberships}
            if not group.closed:
                for expense in Expense.objects.filter(group=group).prefetch_related('shares'):
                    payer = member_key(expense.payer_id)
                    derived[payer] = derived.get(payer, ZERO) + expense.amount
                    for share in expense.shares.all():
                        key = member_key(share.member_id)
                        derived[key] = derived.get(key, ZERO) - share.amount

            report = {}
            for gm in memberships:
                key = member_key(gm.member_id)
                report[key] = {
                    'stored': gm.balance,
                    'derived': derived[key],
                    'drift': gm.balance - derived[key],
                }
                if apply and gm.balance != derived[key]:
                    gm.balance = derived[key]
                    gm.save(update_fields=['balance'])

        drifted = [key for key, row in report.items() if row['drift']]
        if drifted:
            logger.warning(
                "Balance drift in group %s for members %s%s",
                group.id, ', '.join(drifted), ' (fixed)' if apply else ''
            )
        return report
