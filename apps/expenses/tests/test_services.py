"""
Service layer unit tests for the expense ledger.

Tests cover:
- Balance updates for the worked examples
- Zero-sum balances after sequences of expenses
- Validation order and rejected inputs
- Atomicity (no partial writes)
- Budget signal and chat notification
- Summaries and balance audits
"""

import pytest
from decimal import Decimal
from uuid import uuid4
from unittest.mock import patch

from apps.chat.models import ChatMessage, MessageKind
from apps.expenses.exceptions import InvalidAmountError, InvalidExpenseError, InvalidSplitError
from apps.expenses.models import Expense, ExpenseShare
from apps.expenses.services import ExpenseLedgerService
from apps.groups.models import Group, GroupMember
from apps.groups.services.exceptions import GroupClosedError, GroupNotFoundError, UnknownMemberError

D = Decimal


def balances(group):
    return [gm.balance for gm in group.memberships.order_by('position')]


@pytest.mark.django_db
class TestAddExpense:

    def test_owner_pays_equal_split(self, trip, janez, add_expense):
        result = add_expense(janez, '30.00')

        assert balances(trip) == [D('20.00'), D('-10.00'), D('-10.00')]
        assert result.over_budget is False
        assert [s.amount for s in result.shares] == [D('10.00')] * 3

    def test_second_payer(self, trip, janez, marta, add_expense):
        add_expense(janez, '30.00')
        add_expense(marta, '15.00')

        assert balances(trip) == [D('15.00'), D('0.00'), D('-15.00')]

    def test_payer_outside_participants(self, trip, janez, marta, miha, add_expense):
        add_expense(janez, '20.00', participant_ids=[marta.id, miha.id])

        assert balances(trip) == [D('20.00'), D('-10.00'), D('-10.00')]

    def test_weighted_split(self, trip, janez, marta, miha, add_expense):
        result = add_expense(
            marta, '12.00',
            split_mode='shares',
            weights={str(janez.id): 1, str(marta.id): 1, str(miha.id): 2},
        )

        assert balances(trip) == [D('-3.00'), D('9.00'), D('-6.00')]
        assert [s.weight for s in result.shares] == [D('1'), D('1'), D('2')]

    def test_percentage_split(self, trip, janez, marta, miha, add_expense):
        add_expense(
            miha, '100.00',
            split_mode='percentage',
            weights={janez.id: D('33.33'), marta.id: D('33.33'), miha.id: D('33.34')},
        )

        assert balances(trip) == [D('-33.33'), D('-33.33'), D('66.66')]

    def test_balances_sum_to_zero(self, trip, janez, marta, miha, add_expense):
        add_expense(janez, '100.00')
        add_expense(marta, '0.01')
        add_expense(miha, '77.77', participant_ids=[janez.id, miha.id])
        add_expense(
            marta, '19.99', split_mode='shares',
            weights={janez.id: 3, marta.id: 0, miha.id: 7},
        )

        assert sum(balances(trip)) == 0
        for expense in Expense.objects.filter(group=trip):
            assert sum(s.amount for s in expense.shares.all()) == expense.amount

    def test_expense_recorded_in_order(self, trip, janez, marta, add_expense):
        add_expense(janez, '1.00', description='First')
        add_expense(marta, '2.00', description='Second')

        assert list(Expense.objects.filter(group=trip).values_list('description', flat=True)) == [
            'First', 'Second'
        ]

    def test_posts_system_message(self, trip, janez, add_expense):
        result = add_expense(janez, '30.00', description='Groceries')

        assert result.message.kind == MessageKind.SYSTEM
        assert result.message.related_expense == result.expense
        assert result.message.content == 'Janez Novak paid 30.00 EUR for Groceries'


@pytest.mark.django_db
class TestAddExpenseRejections:

    def test_closed_group(self, trip, janez, add_expense):
        Group.objects.filter(id=trip.id).update(closed=True)

        with pytest.raises(GroupClosedError):
            add_expense(janez, '30.00')

        assert not Expense.objects.exists()
        assert balances(trip) == [D('0.00')] * 3

    def test_closed_group_checked_before_amount(self, trip, janez, add_expense):
        Group.objects.filter(id=trip.id).update(closed=True)

        with pytest.raises(GroupClosedError):
            add_expense(janez, '-1')

    def test_missing_group(self, janez):
        with pytest.raises(GroupNotFoundError):
            ExpenseLedgerService.add_expense(
                group_id=uuid4(), description='x', amount=D('1.00'), payer_id=janez.id,
            )

    @pytest.mark.parametrize('amount', ['0', '-3.00', '1.234'])
    def test_invalid_amount(self, trip, janez, add_expense, amount):
        with pytest.raises(InvalidAmountError):
            add_expense(janez, amount)

    def test_blank_description(self, trip, janez, add_expense):
        with pytest.raises(InvalidExpenseError):
            add_expense(janez, '5.00', description='  ')

    def test_unknown_category(self, trip, janez, add_expense):
        with pytest.raises(InvalidExpenseError):
            add_expense(janez, '5.00', category='groceries')

    def test_longest_description_accepted(self, trip, janez, add_expense):
        result = add_expense(janez, '5.00', description='x' * 255)

        assert len(result.expense.description) == 255

    @pytest.mark.parametrize('length', [256, 2100])
    def test_overlong_description(self, trip, janez, add_expense, length):
        with pytest.raises(InvalidExpenseError):
            add_expense(janez, '5.00', description='x' * length)

        assert not Expense.objects.exists()
        assert not ChatMessage.objects.exists()
        assert balances(trip) == [D('0.00')] * 3

    def test_amount_too_large_to_store(self, trip, janez, add_expense):
        with pytest.raises(InvalidAmountError):
            add_expense(janez, '99999999999.99')

        assert not Expense.objects.exists()
        assert balances(trip) == [D('0.00')] * 3

    def test_balance_too_large_to_store(self, trip, janez, miha, add_expense):
        GroupMember.objects.filter(group=trip, member=janez).update(balance=D('9999999999.00'))
        GroupMember.objects.filter(group=trip, member=miha).update(balance=D('-9999999999.00'))

        with pytest.raises(InvalidAmountError):
            add_expense(janez, '3.00')

        assert not Expense.objects.exists()
        assert balances(trip) == [D('9999999999.00'), D('0.00'), D('-9999999999.00')]

    def test_weight_too_large_to_store(self, trip, janez, marta, add_expense):
        with pytest.raises(InvalidSplitError):
            add_expense(
                janez, '10.00', participant_ids=[janez.id, marta.id],
                split_mode='shares', weights={janez.id: 1000000, marta.id: 1000000},
            )

        assert not Expense.objects.exists()

    def test_payer_not_in_group(self, trip, ana, add_expense):
        with pytest.raises(UnknownMemberError):
            add_expense(ana, '5.00')

    def test_participant_not_in_group(self, trip, janez, ana, add_expense):
        with pytest.raises(UnknownMemberError):
            add_expense(janez, '5.00', participant_ids=[janez.id, ana.id])

        assert balances(trip) == [D('0.00')] * 3

    def test_empty_participant_list(self, trip, janez, add_expense):
        with pytest.raises(InvalidSplitError):
            add_expense(janez, '5.00', participant_ids=[])

    def test_zero_weights(self, trip, janez, marta, add_expense):
        with pytest.raises(InvalidSplitError):
            add_expense(
                janez, '50.00', participant_ids=[janez.id, marta.id],
                split_mode='shares', weights={janez.id: 0, marta.id: 0},
            )

        assert not Expense.objects.exists()
        assert not ChatMessage.objects.exists()

    def test_failure_after_writes_rolls_back(self, trip, janez, add_expense):
        with patch('apps.expenses.services.post_system_message', side_effect=RuntimeError('down')):
            with pytest.raises(RuntimeError):
                add_expense(janez, '30.00')

        assert not Expense.objects.exists()
        assert not ExpenseShare.objects.exists()
        assert balances(trip) == [D('0.00')] * 3


@pytest.mark.django_db
class TestBudget:

    def test_over_budget_is_reported_not_blocked(self, trip, janez, add_expense):
        Group.objects.filter(id=trip.id).update(budget=D('50.00'))

        first = add_expense(janez, '40.00')
        second = add_expense(janez, '20.00')

        assert first.over_budget is False
        assert second.over_budget is True
        assert Expense.objects.count() == 2

    def test_exactly_at_budget_is_not_over(self, trip, janez, add_expense):
        Group.objects.filter(id=trip.id).update(budget=D('30.00'))

        assert add_expense(janez, '30.00').over_budget is False

    def test_zero_budget_means_no_budget(self, trip, janez, add_expense):
        Group.objects.filter(id=trip.id).update(budget=D('0'))

        assert add_expense(janez, '30.00').over_budget is False

    def test_would_exceed_budget(self, trip, janez, add_expense):
        Group.objects.filter(id=trip.id).update(budget=D('50.00'))
        add_expense(janez, '40.00')
        trip.refresh_from_db()

        assert ExpenseLedgerService.would_exceed_budget(trip, '10.00') is False
        assert ExpenseLedgerService.would_exceed_budget(trip, '10.01') is True


@pytest.mark.django_db
class TestSummaryAndAudit:

    def test_group_summary(self, trip, janez, marta, add_expense):
        add_expense(janez, '30.00', category='food')
        add_expense(marta, '12.50', category='transport')
        add_expense(marta, '7.50', category='food')

        summary = ExpenseLedgerService.get_group_summary(group_id=trip.id)

        assert summary['total_expenses'] == D('50.00')
        assert summary['expense_count'] == 3
        assert summary['by_category']['food'] == D('37.50')
        assert summary['by_category']['transport'] == D('12.50')
        assert summary['by_category']['entertainment'] == D('0.00')
        assert summary['budget_used_percent'] is None
        assert summary['over_budget'] is False

    def test_recalculate_matches_running_balances(self, trip, janez, marta, add_expense):
        add_expense(janez, '30.00')
        add_expense(marta, '10.00', participant_ids=[marta.id, janez.id])

        report = ExpenseLedgerService.recalculate_balances(group_id=trip.id)

        assert all(row['drift'] == 0 for row in report.values())
        assert report[str(janez.id)]['derived'] == D('15.00')

    def test_recalculate_detects_and_fixes_drift(self, trip, janez, marta, add_expense):
        add_expense(janez, '30.00')
        GroupMember.objects.filter(group=trip, member=marta).update(balance=D('5.00'))

        report = ExpenseLedgerService.recalculate_balances(group_id=trip.id, apply=True)

        assert report[str(marta.id)]['drift'] == D('15.00')
        assert balances(trip) == [D('20.00'), D('-10.00'), D('-10.00')]

    def test_recalculate_closed_group_derives_zero(self, trip, janez, add_expense):
        add_expense(janez, '30.00')
        GroupMember.objects.filter(group=trip).update(balance=D('0'))
        Group.objects.filter(id=trip.id).update(closed=True)

        report = ExpenseLedgerService.recalculate_balances(group_id=trip.id)

        assert all(row['derived'] == 0 and row['drift'] == 0 for row in report.values())
