import pytest
from decimal import Decimal
from django.urls import reverse
from rest_framework import status

from apps.expenses.services import ExpenseLedgerService
from apps.groups.models import Group
from apps.settlements.models import Transaction


def add(group, payer, amount, description='Dinner'):
    return ExpenseLedgerService.add_expense(
        group_id=group.id,
        description=description,
        amount=Decimal(amount),
        payer_id=payer.id,
    )


# =============================================================================
# Group CRUD Tests
# =============================================================================

@pytest.mark.django_db
class TestGroupList:
    """Tests for GET /api/groups/"""

    def test_list_groups_returns_user_groups(self, authenticated_client, trip):
        response = authenticated_client.get(reverse('groups:group-list'))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['results']) == 1
        assert response.data['results'][0]['name'] == trip.name
        assert response.data['results'][0]['member_count'] == 3

    def test_list_groups_excludes_non_member_groups(self, other_client, trip):
        response = other_client.get(reverse('groups:group-list'))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['results']) == 0

    def test_list_groups_unauthenticated(self, api_client):
        response = api_client.get(reverse('groups:group-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestGroupCreate:
    """Tests for POST /api/groups/"""

    def test_create_group(self, authenticated_client, janez, marta):
        data = {
            'name': 'Ski Weekend',
            'members': [str(janez.id), str(marta.id)],
            'budget': '400.00',
        }
        response = authenticated_client.post(reverse('groups:group-list'), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['owner']['id'] == str(janez.id)
        assert [m['member']['name'] for m in response.data['members']] == ['Janez Novak', 'MARTA K.']
        assert Group.objects.get(name='Ski Weekend').budget == Decimal('400.00')

    def test_create_group_caller_must_be_member(self, authenticated_client, marta, miha):
        data = {'name': 'Not mine', 'members': [str(marta.id), str(miha.id)]}
        response = authenticated_client.post(reverse('groups:group-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_create_group_unknown_owner(self, authenticated_client, janez, marta, miha):
        data = {
            'name': 'Lunch',
            'members': [str(janez.id), str(marta.id)],
            'owner': str(miha.id),
        }
        response = authenticated_client.post(reverse('groups:group-list'), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'error' in response.data

    def test_create_group_needs_linked_member(self, unlinked_client, janez, marta):
        data = {'name': 'Lunch', 'members': [str(janez.id), str(marta.id)]}
        response = unlinked_client.post(reverse('groups:group-list'), data, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestGroupDetail:
    """Tests for GET/PATCH /api/groups/{id}/"""

    def test_retrieve_group_with_balances(self, member_client, trip, janez):
        add(trip, janez, '30.00')
        url = reverse('groups:group-detail', kwargs={'pk': trip.id})
        response = member_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        balances = [Decimal(m['balance']) for m in response.data['members']]
        assert balances == [Decimal('20.00'), Decimal('-10.00'), Decimal('-10.00')]
        assert Decimal(response.data['total_expenses']) == Decimal('30.00')

    def test_retrieve_group_non_member(self, other_client, trip):
        url = reverse('groups:group-detail', kwargs={'pk': trip.id})
        response = other_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_owner_updates_budget(self, authenticated_client, trip):
        url = reverse('groups:group-detail', kwargs={'pk': trip.id})
        response = authenticated_client.patch(url, {'budget': '99.90'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert Decimal(response.data['budget']) == Decimal('99.90')

    def test_member_cannot_update(self, member_client, trip):
        url = reverse('groups:group-detail', kwargs={'pk': trip.id})
        response = member_client.patch(url, {'name': 'Mine now'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_update_closed_group_conflict(self, authenticated_client, trip):
        Group.objects.filter(id=trip.id).update(closed=True)
        url = reverse('groups:group-detail', kwargs={'pk': trip.id})
        response = authenticated_client.patch(url, {'name': 'Later'}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT


# =============================================================================
# Ledger Action Tests
# =============================================================================

@pytest.mark.django_db
class TestGroupSummary:
    """Tests for GET /api/groups/{id}/summary/"""

    def test_summary(self, member_client, trip, janez, marta):
        Group.objects.filter(id=trip.id).update(budget=Decimal('50.00'))
        add(trip, janez, '30.00')
        add(trip, marta, '30.00', description='Fuel')

        url = reverse('groups:group-summary', kwargs={'pk': trip.id})
        response = member_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert Decimal(response.data['total_expenses']) == Decimal('60.00')
        assert response.data['expense_count'] == 2
        assert Decimal(response.data['remaining_budget']) == Decimal('-10.00')
        assert response.data['budget_used_percent'] == 120
        assert response.data['over_budget'] is True
        assert Decimal(response.data['by_category']['other']) == Decimal('60.00')


@pytest.mark.django_db
class TestSettleUp:
    """Tests for the settlement actions."""

    def test_preview_writes_nothing(self, member_client, trip, janez):
        add(trip, janez, '30.00')
        url = reverse('groups:group-settlement-preview', kwargs={'pk': trip.id})
        response = member_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 2
        assert {t['kind'] for t in response.data} == {'request'}
        assert not Transaction.objects.exists()

    def test_settle_up(self, authenticated_client, trip, janez):
        add(trip, janez, '30.00')
        url = reverse('groups:group-settle-up', kwargs={'pk': trip.id})
        response = authenticated_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['group']['closed'] is True
        assert len(response.data['transactions']) == 2
        assert all(Decimal(m['balance']) == 0 for m in response.data['group']['members'])

    def test_settle_up_twice_conflicts(self, authenticated_client, trip):
        url = reverse('groups:group-settle-up', kwargs={'pk': trip.id})
        authenticated_client.post(url, {}, format='json')
        response = authenticated_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_settle_up_owner_only(self, member_client, trip, janez):
        add(trip, janez, '30.00')
        url = reverse('groups:group-settle-up', kwargs={'pk': trip.id})
        response = member_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert Group.objects.get(id=trip.id).closed is False
        assert not Transaction.objects.exists()

    def test_settle_up_non_member(self, other_client, trip):
        url = reverse('groups:group-settle-up', kwargs={'pk': trip.id})
        response = other_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert Group.objects.get(id=trip.id).closed is False
