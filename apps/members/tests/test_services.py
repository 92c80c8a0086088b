"""
Service layer unit tests for members app.

Tests cover:
- Lookups by id and by name
- Fuzzy search over names and contact ids
- Identity link to auth users
"""

import pytest
from uuid import uuid4

from apps.members.models import Member
from apps.members.services import (
    normalize_name,
    find_member,
    find_member_by_name,
    search_members,
    get_member_for_user,
    MemberNotFoundError,
)


class TestNormalizeName:

    def test_lowercases_and_strips_punctuation(self):
        assert normalize_name('  MARTA   K. ') == 'marta k'

    def test_keeps_non_ascii_letters(self):
        assert normalize_name('ALJAŽ V.') == 'aljaž v'


@pytest.mark.django_db
class TestFindMember:

    def test_find_member_by_id(self, marta):
        assert find_member(member_id=marta.id) == marta

    def test_find_member_missing(self):
        with pytest.raises(MemberNotFoundError):
            find_member(member_id=uuid4())

    def test_find_member_invalid_id(self):
        with pytest.raises(MemberNotFoundError):
            find_member(member_id='not-a-uuid')

    def test_find_member_by_name_is_case_insensitive(self, marta):
        assert find_member_by_name(name='marta k.') == marta

    def test_find_member_by_name_prefers_oldest(self, marta):
        Member.objects.create(name='Marta K.')
        assert find_member_by_name(name='MARTA K.') == marta

    def test_find_member_by_name_missing(self, marta):
        with pytest.raises(MemberNotFoundError):
            find_member_by_name(name='Marta')


@pytest.mark.django_db
class TestSearchMembers:

    def test_search_by_partial_name(self, janez, marta, miha):
        matches = search_members(query='marta')

        assert matches[0][0] == marta
        assert matches[0][1] == 100

    def test_search_by_contact_id(self, janez, marta, miha):
        matches = search_members(query='41 234 567')

        assert matches[0][0] == marta

    def test_search_without_match(self, janez, marta):
        assert search_members(query='qqqq') == []

    def test_search_blank_query(self, janez):
        assert search_members(query='...') == []

    def test_threshold_filters_weak_matches(self, janez, marta, miha):
        matches = search_members(query='miha', threshold=100)

        assert [member for member, _ in matches] == [miha]


@pytest.mark.django_db
class TestGetMemberForUser:

    def test_linked_user(self, owner_user, janez):
        assert get_member_for_user(owner_user) == janez

    def test_unlinked_user(self, django_user_model):
        user = django_user_model.objects.create_user(username='nobody', password='x')
        assert get_member_for_user(user) is None

    def test_anonymous_user(self):
        from django.contrib.auth.models import AnonymousUser
        assert get_member_for_user(AnonymousUser()) is None
