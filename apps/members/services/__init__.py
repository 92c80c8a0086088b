"""
Members app services layer.
"""

from .exceptions import (
    MembersServiceError,
    MemberNotFoundError,
)

from .registry import (
    normalize_name,
    find_member,
    find_member_by_name,
    search_members,
    get_member_for_user,
)


__all__ = [
    # Exceptions
    'MembersServiceError',
    'MemberNotFoundError',

    # Registry
    'normalize_name',
    'find_member',
    'find_member_by_name',
    'search_members',
    'get_member_for_user',
]
