"""
Group message log services.

Messages are appended in insertion order and never edited or deduplicated.
Posting is allowed on closed groups too.
"""

import logging
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from apps.groups.models import Group
from apps.groups.services import GroupNotFoundError, find_group_member

from .exceptions import EmptyMessageError
from .models import ChatMessage, MessageKind

logger = logging.getLogger(__name__)

SYSTEM_SENDER_NAME = 'Flik'
MAX_MESSAGE_LENGTH = 2000


def _clean_content(content: str) -> str:
    content = (content or '').strip()
    if not content:
        raise EmptyMessageError("Message content cannot be empty")
    if len(content) > MAX_MESSAGE_LENGTH:
        raise EmptyMessageError(f"Message is longer than {MAX_MESSAGE_LENGTH} characters")
    return content


@transaction.atomic
def post_message(*, group_id: UUID, sender_id: UUID, content: str) -> ChatMessage:
    """
    Append a text message from a group member.

    Raises:
        GroupNotFoundError: If group doesn't exist
        UnknownMemberError: If the sender is not in the group
        EmptyMessageError: If the content is blank or too long
    """
    try:
        group = Group.objects.get(id=group_id)
    except (Group.DoesNotExist, ValidationError):
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    membership = find_group_member(group, sender_id)
    content = _clean_content(content)

    return ChatMessage.objects.create(
        group=group,
        sender=membership.member,
        sender_name=membership.member.name,
        content=content,
        kind=MessageKind.TEXT,
    )


def post_system_message(*, group: Group, content: str, related_expense=None) -> ChatMessage:
    """
    Append a system notification to a group's log.

    Called from inside the ledger's transactions, so it writes in the
    caller's transaction.
    """
    message = ChatMessage.objects.create(
        group=group,
        sender=None,
        sender_name=SYSTEM_SENDER_NAME,
        content=_clean_content(content),
        kind=MessageKind.SYSTEM,
        related_expense=related_expense,
    )
    logger.debug("System message posted to group %s: %s", group.id, message.content)
    return message


def list_messages_for_group(*, group_id: UUID) -> QuerySet[ChatMessage]:
    """
    Messages of a group, oldest first.

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
        ChatMessage.objects
        .filter(group_id=group_id)
        .select_related('sender', 'related_expense')
        .order_by('id')
    )
