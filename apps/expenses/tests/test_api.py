import pytest
from decimal import Decimal
from django.urls import reverse
from rest_framework import status

from apps.expenses.models import Expense
from apps.groups.models import Group, GroupMember


def expense_payload(group, payer, amount='30.00', **extra):
    data = {
        'group': str(group.id),
        'description': 'Dinner',
        'amount': amount,
        'payer': str(payer.id),
    }
    data.update(extra)
    return data


@pytest.mark.django_db
class TestExpenseCreate:
    """Tests for POST /api/expenses/"""

    def test_add_expense(self, authenticated_client, trip, janez):
        response = authenticated_client.post(
            reverse('expenses:expense-list'), expense_payload(trip, janez), format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['expense']['amount'] == '30.00'
        assert response.data['expense']['currency'] == 'EUR'
        assert len(response.data['expense']['shares']) == 3
        assert response.data['over_budget'] is False
        assert response.data['total_expenses'] == '30.00'
        assert response.data['message'] == 'Janez Novak paid 30.00 EUR for Dinner'

        balances = GroupMember.objects.filter(group=trip).order_by('position')
        assert [gm.balance for gm in balances] == [Decimal('20.00'), Decimal('-10.00'), Decimal('-10.00')]

    def test_member_can_record_for_another_payer(self, member_client, trip, miha, marta):
        response = member_client.post(
            reverse('expenses:expense-list'),
            expense_payload(trip, miha, '9.00', participants=[str(marta.id), str(miha.id)]),
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['expense']['payer']['id'] == str(miha.id)

    def test_shares_split(self, authenticated_client, trip, janez, marta, miha):
        data = expense_payload(
            trip, janez, '12.00',
            split_mode='shares',
            weights={str(janez.id): '1', str(marta.id): '1', str(miha.id): '2'},
        )
        response = authenticated_client.post(reverse('expenses:expense-list'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert [s['amount'] for s in response.data['expense']['shares']] == ['3.00', '3.00', '6.00']

    def test_over_budget_reported(self, authenticated_client, trip, janez):
        Group.objects.filter(id=trip.id).update(budget=Decimal('20.00'))

        response = authenticated_client.post(
            reverse('expenses:expense-list'), expense_payload(trip, janez), format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['over_budget'] is True

    def test_weights_required_for_percentage(self, authenticated_client, trip, janez):
        response = authenticated_client.post(
            reverse('expenses:expense-list'),
            expense_payload(trip, janez, split_mode='percentage'),
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'weights' in response.data

    def test_percentages_must_sum_to_hundred(self, authenticated_client, trip, janez, marta):
        data = expense_payload(
            trip, janez,
            participants=[str(janez.id), str(marta.id)],
            split_mode='percentage',
            weights={str(janez.id): '50', str(marta.id): '40'},
        )
        response = authenticated_client.post(reverse('expenses:expense-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'error' in response.data
        assert not Expense.objects.exists()

    def test_zero_amount(self, authenticated_client, trip, janez):
        response = authenticated_client.post(
            reverse('expenses:expense-list'), expense_payload(trip, janez, '0.00'), format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_payer_outside_group(self, authenticated_client, trip, ana):
        response = authenticated_client.post(
            reverse('expenses:expense-list'), expense_payload(trip, ana), format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert str(ana.id) in response.data['error']

    def test_closed_group_conflict(self, authenticated_client, trip, janez):
        Group.objects.filter(id=trip.id).update(closed=True)

        response = authenticated_client.post(
            reverse('expenses:expense-list'), expense_payload(trip, janez), format='json'
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert not Expense.objects.exists()

    def test_non_member_forbidden(self, other_client, trip, janez):
        response = other_client.post(
            reverse('expenses:expense-list'), expense_payload(trip, janez), format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestExpenseRead:
    """Tests for GET /api/expenses/"""

    @pytest.fixture
    def recorded(self, trip, janez, marta, add_expense):
        first = add_expense(janez, '30.00', description='Groceries', category='food')
        second = add_expense(marta, '12.00', description='Bus', category='transport')
        return [first.expense, second.expense]

    def test_list_for_group(self, authenticated_client, trip, recorded):
        response = authenticated_client.get(
            reverse('expenses:expense-list'), {'group': str(trip.id)}
        )

        assert response.status_code == status.HTTP_200_OK
        assert [e['description'] for e in response.data['results']] == ['Groceries', 'Bus']
        assert response.data['results'][0]['participant_count'] == 3

    def test_filter_by_category(self, authenticated_client, trip, recorded):
        response = authenticated_client.get(
            reverse('expenses:expense-list'), {'group': str(trip.id), 'category': 'transport'}
        )

        assert [e['description'] for e in response.data['results']] == ['Bus']

    def test_list_for_non_member_group(self, other_client, trip, recorded):
        response = other_client.get(reverse('expenses:expense-list'), {'group': str(trip.id)})

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_without_group_shows_only_own_groups(self, other_client, recorded):
        response = other_client.get(reverse('expenses:expense-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['results'] == []

    def test_retrieve(self, member_client, recorded):
        response = member_client.get(
            reverse('expenses:expense-detail', kwargs={'pk': recorded[0].id})
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['payer']['name'] == 'Janez Novak'
        assert [s['amount'] for s in response.data['shares']] == ['10.00', '10.00', '10.00']

    def test_retrieve_hidden_from_outsiders(self, other_client, recorded):
        response = other_client.get(
            reverse('expenses:expense-detail', kwargs={'pk': recorded[0].id})
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_budget_check(self, authenticated_client, trip, recorded):
        Group.objects.filter(id=trip.id).update(budget=Decimal('50.00'))
        url = reverse('expenses:expense-budget-check')

        fits = authenticated_client.get(url, {'group': str(trip.id), 'amount': '8.00'})
        exceeds = authenticated_client.get(url, {'group': str(trip.id), 'amount': '8.01'})

        assert fits.status_code == status.HTTP_200_OK
        assert fits.data['would_exceed'] is False
        assert exceeds.data['would_exceed'] is True
        assert exceeds.data['total_expenses'] == Decimal('42.00')
