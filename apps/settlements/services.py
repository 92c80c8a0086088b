"""
Settlement services.

Settle-up turns every non-owner member's balance into one transaction with
the group owner, zeroes all balances and closes the group. The same module
keeps the transaction log: peer-to-peer transfers and the pending -> done
status transitions.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from apps.chat.services import post_system_message
from apps.expenses.splitting import clean_amount
from apps.groups.models import Group, GroupMember
from apps.groups.services import (
    GroupNotFoundError,
    InvalidGroupError,
    get_group_by_id,
    lock_group,
)
from apps.members.models import Member
from apps.members.services import find_member

from .exceptions import (
    AlreadySettledError,
    InvalidStateTransitionError,
    InvalidTransactionError,
    TransactionNotFoundError,
)
from .models import Transaction, TransactionKind, TransactionStatus

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


@dataclass
class PlannedTransfer:
    """A settlement transaction that has not been written yet."""
    from_member: Member
    to_member: Member
    amount: Decimal
    kind: str
    status: str

    @property
    def signed_amount(self):
        """Amount from the owner's point of view: payments out are positive."""
        return self.amount if self.kind == TransactionKind.PAYMENT else -self.amount


@dataclass
class SettlementResult:
    group: Group
    transactions: List[Transaction]


def _ordered_memberships(group: Group) -> List[GroupMember]:
    return list(
        GroupMember.objects
        .filter(group=group)
        .select_related('member')
        .order_by('position')
    )


def _plan(group: Group, memberships: List[GroupMember]) -> List[PlannedTransfer]:
    if not memberships:
        raise InvalidGroupError(f"Group '{group.name}' has no members")

    owner = next((gm.member for gm in memberships if gm.member_id == group.owner_id), None)
    if owner is None:
        raise InvalidGroupError(f"The owner of '{group.name}' is not one of its members")

    plan = []
    for gm in memberships:
        if gm.member_id == owner.pk or gm.balance == 0:
            continue
        if gm.balance > 0:
            # Member is owed money: owner pays them
            plan.append(PlannedTransfer(
                from_member=owner,
                to_member=gm.member,
                amount=gm.balance,
                kind=TransactionKind.PAYMENT,
                status=TransactionStatus.COMPLETED,
            ))
        else:
            # Member owes money: owner requests it
            plan.append(PlannedTransfer(
                from_member=gm.member,
                to_member=owner,
                amount=-gm.balance,
                kind=TransactionKind.REQUEST,
                status=TransactionStatus.PENDING,
            ))
    return plan


def preview_settlement(*, group_id: UUID) -> List[PlannedTransfer]:
    """
    Compute the settle-up transactions without writing anything.

    Raises:
        GroupNotFoundError: If group doesn't exist
        AlreadySettledError: If the group is already closed
        InvalidGroupError: No members, or the owner is not a member
    """
    group = get_group_by_id(group_id=group_id)
    if group.closed:
        raise AlreadySettledError(f"Group '{group.name}' is already settled")
    return _plan(group, _ordered_memberships(group))


@transaction.atomic
def settle_up(*, group_id: UUID, description: str = '') -> SettlementResult:
    """
    Close a group and emit one transaction per non-owner member.

    A positive balance becomes a completed payment from the owner to the
    member; a negative one becomes a pending request from the member to the
    owner. Afterwards every balance is zero and the group is closed.

    Raises:
        GroupNotFoundError: If group doesn't exist
        AlreadySettledError: If the group is already closed
        InvalidGroupError: No members, or the owner is not a member
    """
    group = lock_group(group_id=group_id)

    if group.closed:
        logger.warning("Rejected settle-up of already closed group %s", group.id)
        raise AlreadySettledError(f"Group '{group.name}' is already settled")

    memberships = _ordered_memberships(group)
    plan = _plan(group, memberships)

    description = (description or '').strip() or f"Settle-up: {group.name}"
    transactions = [
        record_transaction(
            group=group,
            from_member=transfer.from_member,
            to_member=transfer.to_member,
            amount=transfer.amount,
            kind=transfer.kind,
            status=transfer.status,
            description=description,
        )
        for transfer in plan
    ]

    GroupMember.objects.filter(group=group).update(balance=ZERO)

    group.closed = True
    group.closed_at = timezone.now()
    group.save(update_fields=['closed', 'closed_at', 'updated_at'])

    post_system_message(
        group=group,
        content=f"{group.name} was settled up with {len(transactions)} transactions",
    )

    logger.info(
        "Group %s settled: %d transactions, owner %s",
        group.id, len(transactions), group.owner_id
    )
    return SettlementResult(group=group, transactions=transactions)


def record_transaction(
    *,
    from_member: Member,
    to_member: Member,
    amount,
    kind: str,
    status: str = TransactionStatus.PENDING,
    group: Optional[Group] = None,
    description: str = ''
) -> Transaction:
    """
    Append a transaction to the log.

    Raises:
        InvalidAmountError: Non-positive or sub-cent amount
        InvalidTransactionError: Same member on both ends, or unknown kind
            or status
    """
    amount = clean_amount(amount)
    if from_member.pk == to_member.pk:
        raise InvalidTransactionError("A member cannot transfer money to themselves")
    if kind not in TransactionKind.values:
        raise InvalidTransactionError(f"Unknown transaction kind: {kind!r}")
    if status not in TransactionStatus.values:
        raise InvalidTransactionError(f"Unknown transaction status: {status!r}")

    return Transaction.objects.create(
        group=group,
        from_member=from_member,
        to_member=to_member,
        amount=amount,
        kind=kind,
        status=status,
        description=description,
    )


@transaction.atomic
def send_money(
    *,
    from_member_id: UUID,
    to_member_id: UUID,
    amount,
    description: str = ''
) -> Transaction:
    """
    Record a completed payment outside any group.

    Raises:
        MemberNotFoundError: If either member doesn't exist
        InvalidAmountError: Non-positive or sub-cent amount
        InvalidTransactionError: Sender and recipient are the same
    """
    sender = find_member(member_id=from_member_id)
    recipient = find_member(member_id=to_member_id)

    txn = record_transaction(
        from_member=sender,
        to_member=recipient,
        amount=amount,
        kind=TransactionKind.PAYMENT,
        status=TransactionStatus.COMPLETED,
        description=description,
    )
    logger.info("Payment %s: %s sent %s to %s", txn.reference, sender.name, txn.amount, recipient.name)
    return txn


@transaction.atomic
def request_money(
    *,
    requester_id: UUID,
    payer_id: UUID,
    amount,
    description: str = ''
) -> Transaction:
    """
    Record a pending request outside any group.

    The payer is the ``from_member`` and the requester the ``to_member``,
    matching the direction the money will move.

    Raises:
        MemberNotFoundError: If either member doesn't exist
        InvalidAmountError: Non-positive or sub-cent amount
        InvalidTransactionError: Requester and payer are the same
    """
    requester = find_member(member_id=requester_id)
    payer = find_member(member_id=payer_id)

    txn = record_transaction(
        from_member=payer,
        to_member=requester,
        amount=amount,
        kind=TransactionKind.REQUEST,
        status=TransactionStatus.PENDING,
        description=description,
    )
    logger.info("Request %s: %s asked %s for %s", txn.reference, requester.name, payer.name, txn.amount)
    return txn


def get_transaction(*, reference: UUID) -> Transaction:
    """
    Raises:
        TransactionNotFoundError: If no transaction has this reference
    """
    try:
        return (
            Transaction.objects
            .select_related('group', 'from_member', 'to_member')
            .get(reference=reference)
        )
    except (Transaction.DoesNotExist, ValidationError):
        raise TransactionNotFoundError(f"Transaction {reference} not found")


def _transition(reference: UUID, new_status: str) -> Transaction:
    try:
        txn = Transaction.objects.select_for_update().get(reference=reference)
    except (Transaction.DoesNotExist, ValidationError):
        raise TransactionNotFoundError(f"Transaction {reference} not found")

    if not txn.is_pending:
        logger.warning(
            "Rejected transition of transaction %s from %s to %s",
            reference, txn.status, new_status
        )
        raise InvalidStateTransitionError(
            f"Cannot change a {txn.status} transaction to {new_status}"
        )

    txn.status = new_status
    txn.save(update_fields=['status', 'updated_at'])
    logger.info("Transaction %s is now %s", reference, new_status)
    return txn


@transaction.atomic
def complete_transaction(*, reference: UUID) -> Transaction:
    """
    Mark a pending transaction as completed.

    Raises:
        TransactionNotFoundError: If the transaction doesn't exist
        InvalidStateTransitionError: If it is not pending
    """
    return _transition(reference, TransactionStatus.COMPLETED)


@transaction.atomic
def cancel_transaction(*, reference: UUID) -> Transaction:
    """
    Cancel a pending transaction.

    Raises:
        TransactionNotFoundError: If the transaction doesn't exist
        InvalidStateTransitionError: If it is not pending
    """
    return _transition(reference, TransactionStatus.CANCELLED)


def list_transactions_for_group(*, group_id: UUID) -> QuerySet[Transaction]:
    """
    Transactions of a group, oldest first.

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
        Transaction.objects
        .filter(group_id=group_id)
        .select_related('from_member', 'to_member')
        .order_by('id')
    )


def list_transactions_for_member(*, member_id: UUID, status: Optional[str] = None) -> QuerySet[Transaction]:
    """
    Transactions where the member pays or receives, oldest first.
    """
    queryset = (
        Transaction.objects
        .filter(Q(from_member_id=member_id) | Q(to_member_id=member_id))
        .select_related('group', 'from_member', 'to_member')
        .order_by('id')
    )
    if status:
        queryset = queryset.filter(status=status)
    return queryset
