"""
Group management service.

Handles group creation and lifecycle with proper transaction safety.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Prefetch, QuerySet

from apps.groups.models import Group, GroupMember
from apps.members.models import Member

from .exceptions import (
    GroupNotFoundError,
    GroupClosedError,
    InvalidGroupError,
)
from .membership_management import member_key

logger = logging.getLogger(__name__)

MIN_GROUP_MEMBERS = 2


def _clean_budget(budget) -> Optional[Decimal]:
    if budget is None or budget == '':
        return None
    try:
        value = Decimal(str(budget))
    except InvalidOperation:
        raise InvalidGroupError(f"Budget '{budget}' is not a number")
    if value < 0:
        raise InvalidGroupError("Budget must be a non-negative number")
    return value.quantize(Decimal('0.01'))


def _dedupe(ids: Iterable[str]) -> list:
    seen = set()
    ordered = []
    for value in ids:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


@transaction.atomic
def create_group(
    *,
    name: str,
    member_ids: Iterable[UUID],
    owner_id: Optional[UUID] = None,
    budget=None,
    currency: Optional[str] = None,
    color: Optional[str] = None
) -> Group:
    """
    Create a new group with its ordered member list.

    Every member starts with a zero balance. The owner defaults to the
    first selected member.

    Args:
        name: Group name
        member_ids: Catalog member IDs, in display order
        owner_id: Member against whom balances are settled
        budget: Optional non-negative soft budget
        currency: Currency code (defaults to LEDGER_DEFAULT_CURRENCY)
        color: Display color

    Returns:
        Created Group instance

    Raises:
        InvalidGroupError: Blank name, fewer than two members, unknown
            member IDs, negative budget or owner outside the member list
    """
    name = (name or '').strip()
    if not name:
        raise InvalidGroupError("Group name is required")

    member_ids = _dedupe(member_key(mid) for mid in (member_ids or []))
    if len(member_ids) < MIN_GROUP_MEMBERS:
        raise InvalidGroupError(f"A group needs at least {MIN_GROUP_MEMBERS} members")

    try:
        members_by_id = {
            str(m.id): m for m in Member.objects.filter(id__in=member_ids)
        }
    except ValidationError:
        members_by_id = {}
    missing = [mid for mid in member_ids if mid not in members_by_id]
    if missing:
        raise InvalidGroupError(f"Unknown members: {', '.join(missing)}")
    members = [members_by_id[mid] for mid in member_ids]

    if owner_id is None:
        owner = members[0]
    else:
        owner = members_by_id.get(member_key(owner_id))
        if owner is None:
            raise InvalidGroupError("The owner must be one of the group members")

    group = Group.objects.create(
        name=name,
        owner=owner,
        budget=_clean_budget(budget),
        currency=currency or settings.LEDGER_DEFAULT_CURRENCY,
        color=color or '#FF9AA2',
    )
    GroupMember.objects.bulk_create([
        GroupMember(group=group, member=member, position=index)
        for index, member in enumerate(members)
    ])

    logger.info("Group %s '%s' created with %d members", group.id, group.name, len(members))
    return group


def get_group_by_id(*, group_id: UUID) -> Group:
    """
    Get a group by ID with optimized queries.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    try:
        return (
            Group.objects
            .select_related('owner')
            .prefetch_related(
                Prefetch(
                    'memberships',
                    queryset=GroupMember.objects.select_related('member')
                )
            )
            .get(id=group_id)
        )
    except (Group.DoesNotExist, ValidationError):
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


def lock_group(*, group_id: UUID) -> Group:
    """
    Fetch a group with a row lock for the rest of the current transaction.

    All read-modify-write paths over a group's balances go through this,
    so writers to the same group are serialized.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    try:
        return (
            Group.objects
            .select_for_update()
            .select_related('owner')
            .get(id=group_id)
        )
    except (Group.DoesNotExist, ValidationError):
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


def list_groups(*, member: Optional[Member] = None, include_closed: bool = True) -> QuerySet[Group]:
    """
    List groups, optionally only those a member belongs to.
    """
    queryset = Group.objects.select_related('owner').prefetch_related('memberships')
    if member is not None:
        queryset = queryset.filter(memberships__member=member).distinct()
    if not include_closed:
        queryset = queryset.filter(closed=False)
    return queryset


@transaction.atomic
def update_group(
    *,
    group_id: UUID,
    name: Optional[str] = None,
    budget=None,
    clear_budget: bool = False,
    color: Optional[str] = None
) -> Group:
    """
    Update group details.

    Uses select_for_update to prevent concurrent modifications.

    Raises:
        GroupNotFoundError: If group doesn't exist
        GroupClosedError: If the group is already settled
        InvalidGroupError: Blank name or negative budget
    """
    group = lock_group(group_id=group_id)

    if group.closed:
        raise GroupClosedError(f"Group '{group.name}' is closed")

    update_fields = ['updated_at']

    if name is not None:
        name = name.strip()
        if not name:
            raise InvalidGroupError("Group name is required")
        group.name = name
        update_fields.append('name')

    if clear_budget:
        group.budget = None
        update_fields.append('budget')
    elif budget is not None:
        group.budget = _clean_budget(budget)
        update_fields.append('budget')

    if color is not None:
        group.color = color
        update_fields.append('color')

    group.save(update_fields=update_fields)
    return group
