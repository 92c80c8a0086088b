"""
Groups app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and concurrency protection.
"""

from .exceptions import (
    GroupsServiceError,
    GroupNotFoundError,
    InvalidGroupError,
    GroupClosedError,
    UnknownMemberError,
)

from .group_management import (
    create_group,
    get_group_by_id,
    lock_group,
    list_groups,
    update_group,
)

from .membership_management import (
    member_key,
    get_group_members,
    find_group_member,
    resolve_group_members,
)


__all__ = [
    # Exceptions
    'GroupsServiceError',
    'GroupNotFoundError',
    'InvalidGroupError',
    'GroupClosedError',
    'UnknownMemberError',

    # Group Management
    'create_group',
    'get_group_by_id',
    'lock_group',
    'list_groups',
    'update_group',

    # Membership lookups
    'member_key',
    'get_group_members',
    'find_group_member',
    'resolve_group_members',
]
