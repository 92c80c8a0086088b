"""
Member registry service.

Identity lookups over the participant catalog.
"""

import logging
import re
from typing import List, Optional, Tuple
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError
from fuzzywuzzy import fuzz

from apps.members.models import Member

from .exceptions import MemberNotFoundError

logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    """
    Normalize a display name for comparison.

    Args:
        name: Name to normalize

    Returns:
        Lowercase name with collapsed whitespace and no punctuation
    """
    name = name.lower().strip()
    name = re.sub(r'\s+', ' ', name)
    name = re.sub(r'[^\w\s-]', '', name)
    return name


def find_member(*, member_id: UUID) -> Member:
    """
    Get a catalog member by ID.

    Raises:
        MemberNotFoundError: If member doesn't exist
    """
    try:
        return Member.objects.get(id=member_id)
    except (Member.DoesNotExist, ValidationError):
        raise MemberNotFoundError(f"Member with ID {member_id} not found")


def find_member_by_name(*, name: str) -> Member:
    """
    Get a catalog member by display name (case-insensitive exact match).

    If several members share the name, the oldest entry wins.

    Raises:
        MemberNotFoundError: If no member has that name
    """
    member = (
        Member.objects
        .filter(name__iexact=name.strip())
        .order_by('created_at')
        .first()
    )
    if member is None:
        raise MemberNotFoundError(f"Member named '{name}' not found")
    return member


def search_members(
    *,
    query: str,
    threshold: Optional[int] = None
) -> List[Tuple[Member, int]]:
    """
    Fuzzy search over member names and contact identifiers.

    Args:
        query: Free text typed into a contact picker
        threshold: Minimum similarity score (0-100)

    Returns:
        List of (member, score) tuples, best match first
    """
    if threshold is None:
        threshold = settings.LEDGER_MEMBER_SEARCH_THRESHOLD

    query_norm = normalize_name(query)
    if not query_norm:
        return []

    matches = []
    for member in Member.objects.all():
        name_score = fuzz.partial_ratio(query_norm, normalize_name(member.name))
        contact_score = 0
        if member.contact_id:
            contact_score = fuzz.partial_ratio(
                query_norm.replace(' ', ''),
                member.contact_id.replace(' ', '')
            )
        score = max(name_score, contact_score)
        if score >= threshold:
            matches.append((member, score))

    matches.sort(key=lambda m: (-m[1], m[0].name))
    logger.debug("Member search %r matched %d entries", query, len(matches))
    return matches


def get_member_for_user(user) -> Optional[Member]:
    """
    Return the catalog member linked to an auth user, if any.
    """
    if user is None or not user.is_authenticated:
        return None
    return Member.objects.filter(user=user).first()
