"""
Membership lookups inside a group.

Validates member references passed into the ledger and settlement engine.
"""

from typing import Dict, Iterable
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db.models import QuerySet

from apps.groups.models import Group, GroupMember

from .exceptions import GroupNotFoundError, UnknownMemberError


def member_key(member_id) -> str:
    """Canonical string form of a member reference."""
    try:
        return str(UUID(str(member_id)))
    except ValueError:
        return str(member_id)


def get_group_members(*, group_id: UUID) -> QuerySet[GroupMember]:
    """
    Get all members of a group in display order.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    try:
        exists = Group.objects.filter(id=group_id).exists()
    except ValidationError:
        exists = False
    if not exists:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    return (
        GroupMember.objects
        .filter(group_id=group_id)
        .select_related('member')
        .order_by('position')
    )


def find_group_member(group: Group, member_id) -> GroupMember:
    """
    Get one member of a group.

    Raises:
        UnknownMemberError: If the member is not part of the group
    """
    try:
        return (
            GroupMember.objects
            .select_related('member')
            .get(group=group, member_id=member_id)
        )
    except (GroupMember.DoesNotExist, ValidationError):
        raise UnknownMemberError(f"Member {member_id} is not part of {group.name}")


def resolve_group_members(group: Group, member_ids: Iterable) -> Dict[str, GroupMember]:
    """
    Validate a batch of member references against a group.

    Returns:
        Mapping of member_key(member_id) to GroupMember for every requested id

    Raises:
        UnknownMemberError: Listing every id that is not a group member
    """
    memberships = {
        member_key(gm.member_id): gm
        for gm in GroupMember.objects.select_related('member').filter(group=group)
    }
    keys = [member_key(mid) for mid in member_ids]
    unknown = [key for key in keys if key not in memberships]
    if unknown:
        raise UnknownMemberError(
            f"Not members of {group.name}: {', '.join(unknown)}"
        )
    return {key: memberships[key] for key in keys}
