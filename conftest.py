"""
Shared fixtures: auth users, catalog members and a three-person group.
"""

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.members.models import Member
from apps.groups.services import create_group


User = get_user_model()


def authenticate(client, user):
    """Attach a bearer token for ``user`` to ``client``."""
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def owner_user(db):
    return User.objects.create_user(username='janez', password='TestPass123!')


@pytest.fixture
def member_user(db):
    return User.objects.create_user(username='marta', password='TestPass123!')


@pytest.fixture
def other_user(db):
    """A user whose member is in no group."""
    return User.objects.create_user(username='lara', password='TestPass123!')


@pytest.fixture
def janez(db, owner_user):
    return Member.objects.create(name='Janez Novak', contact_id='+386 40 123 456', user=owner_user)


@pytest.fixture
def marta(db, member_user):
    return Member.objects.create(name='MARTA K.', contact_id='+386 41 234 567', user=member_user)


@pytest.fixture
def miha(db):
    return Member.objects.create(name='MIHA M.', contact_id='+386 43 456 789')


@pytest.fixture
def ana(db):
    return Member.objects.create(name='ANA S.', contact_id='+386 44 567 890')


@pytest.fixture
def lara(db, other_user):
    return Member.objects.create(name='LARA T.', contact_id='+386 46 789 012', user=other_user)


@pytest.fixture
def trip(janez, marta, miha):
    """Open group: Janez (owner), Marta, Miha; all balances zero."""
    return create_group(
        name='Bohinj Trip',
        member_ids=[janez.id, marta.id, miha.id],
        owner_id=janez.id,
    )


@pytest.fixture
def authenticated_client(api_client, owner_user, janez):
    """API client acting as Janez, owner of the trip."""
    return authenticate(api_client, owner_user)


@pytest.fixture
def member_client(api_client, member_user, marta):
    """API client acting as Marta, a plain trip member."""
    return authenticate(api_client, member_user)


@pytest.fixture
def other_client(api_client, other_user, lara):
    """API client acting as Lara, who is in no group."""
    return authenticate(api_client, other_user)


@pytest.fixture
def unlinked_client(api_client, db):
    """API client for an authenticated user without a catalog member."""
    user = User.objects.create_user(username='nobody', password='TestPass123!')
    return authenticate(api_client, user)
