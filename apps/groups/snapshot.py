"""
Ledger snapshots.

Converts the whole stored ledger (catalog, groups with members, balances
and expenses, transactions, messages) to a JSON-serialisable dict and back.
Money travels as strings so no precision is lost.
"""

import logging
from decimal import Decimal, InvalidOperation
from uuid import UUID

from django.db import transaction
from django.utils.dateparse import parse_date, parse_datetime

from apps.chat.models import ChatMessage, MessageKind
from apps.expenses.models import Expense, ExpenseCategory, ExpenseShare, SplitMode
from apps.groups.models import Group, GroupMember
from apps.members.models import Member
from apps.settlements.models import Transaction, TransactionKind, TransactionStatus

from .services.exceptions import GroupsServiceError

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class InvalidSnapshotError(GroupsServiceError):
    """Raised when a snapshot cannot be loaded."""
    pass


def _money(value):
    return None if value is None else str(value)


def _when(value):
    return None if value is None else value.isoformat()


def _ref(value):
    return None if value is None else str(value)


def dump_state() -> dict:
    """
    Serialise the stored ledger.

    Returns:
        dict with ``version``, ``members``, ``groups``, ``transactions``
        and ``messages``; lists keep their stored order.
    """
    members = [
        {'id': str(m.id), 'name': m.name, 'contact_id': m.contact_id}
        for m in Member.objects.order_by('created_at', 'name')
    ]

    groups = []
    for group in Group.objects.order_by('created_at').prefetch_related('memberships', 'expenses__shares'):
        groups.append({
            'id': str(group.id),
            'name': group.name,
            'owner': str(group.owner_id),
            'budget': _money(group.budget),
            'currency': group.currency,
            'color': group.color,
            'closed': group.closed,
            'closed_at': _when(group.closed_at),
            'created_at': _when(group.created_at),
            'members': [
                {
                    'member': str(gm.member_id),
                    'balance': _money(gm.balance),
                    'position': gm.position,
                }
                for gm in sorted(group.memberships.all(), key=lambda gm: gm.position)
            ],
            'expenses': [
                {
                    'id': str(expense.id),
                    'description': expense.description,
                    'amount': _money(expense.amount),
                    'payer': str(expense.payer_id),
                    'split_mode': expense.split_mode,
                    'category': expense.category,
                    'date': expense.date.isoformat(),
                    'position': expense.position,
                    'shares': [
                        {
                            'member': str(share.member_id),
                            'weight': _money(share.weight),
                            'amount': _money(share.amount),
                        }
                        for share in sorted(expense.shares.all(), key=lambda s: s.position)
                    ],
                }
                for expense in sorted(group.expenses.all(), key=lambda e: e.position)
            ],
        })

    transactions = [
        {
            'id': str(txn.reference),
            'group': _ref(txn.group_id),
            'from_member': str(txn.from_member_id),
            'to_member': str(txn.to_member_id),
            'amount': _money(txn.amount),
            'kind': txn.kind,
            'status': txn.status,
            'description': txn.description,
            'created_at': _when(txn.created_at),
        }
        for txn in Transaction.objects.order_by('id')
    ]

    messages = [
        {
            'id': str(msg.reference),
            'group': str(msg.group_id),
            'sender': _ref(msg.sender_id),
            'sender_name': msg.sender_name,
            'content': msg.content,
            'kind': msg.kind,
            'related_expense': _ref(msg.related_expense_id),
            'timestamp': _when(msg.timestamp),
        }
        for msg in ChatMessage.objects.order_by('id')
    ]

    return {
        'version': SNAPSHOT_VERSION,
        'members': members,
        'groups': groups,
        'transactions': transactions,
        'messages': messages,
    }


# =============================================================================
# Loading
# =============================================================================

def _parse_uuid(value, field):
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise InvalidSnapshotError(f"{field}: '{value}' is not a valid id")


def _parse_optional_uuid(value, field):
    return None if value is None else _parse_uuid(value, field)


def _parse_decimal(value, field, allow_none=False):
    if value is None and allow_none:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidSnapshotError(f"{field}: '{value}' is not a number")


def _parse_datetime(value, field):
    if value is None:
        return None
    parsed = parse_datetime(str(value))
    if parsed is None:
        raise InvalidSnapshotError(f"{field}: '{value}' is not a timestamp")
    return parsed


def _parse_choice(value, choices, field):
    if value not in choices:
        raise InvalidSnapshotError(f"{field}: unknown value '{value}'")
    return value


def _validate(state):
    """Check the whole snapshot before anything is written."""
    if not isinstance(state, dict):
        raise InvalidSnapshotError("Snapshot must be a JSON object")
    if state.get('version') != SNAPSHOT_VERSION:
        raise InvalidSnapshotError(f"Unsupported snapshot version: {state.get('version')!r}")

    try:
        member_ids = {_parse_uuid(m['id'], 'members.id') for m in state.get('members', [])}
        group_ids = set()
        expense_ids = set()

        for g in state.get('groups', []):
            group_ids.add(_parse_uuid(g['id'], 'groups.id'))
            listed = {_parse_uuid(gm['member'], 'groups.members.member') for gm in g['members']}
            if _parse_uuid(g['owner'], 'groups.owner') not in member_ids:
                raise InvalidSnapshotError(f"Group {g['id']}: owner is not in the catalog")
            if not listed <= member_ids:
                raise InvalidSnapshotError(f"Group {g['id']}: members missing from the catalog")
            balances = [_parse_decimal(gm['balance'], 'groups.members.balance') for gm in g['members']]
            if sum(balances, Decimal('0')) != 0:
                raise InvalidSnapshotError(f"Group {g['id']}: balances do not sum to zero")
            _parse_decimal(g.get('budget'), 'groups.budget', allow_none=True)
            _parse_datetime(g.get('closed_at'), 'groups.closed_at')

            for e in g['expenses']:
                expense_ids.add(_parse_uuid(e['id'], 'expenses.id'))
                _parse_choice(e['split_mode'], SplitMode.values, 'expenses.split_mode')
                _parse_choice(e['category'], ExpenseCategory.values, 'expenses.category')
                if parse_date(str(e['date'])) is None:
                    raise InvalidSnapshotError(f"expenses.date: '{e['date']}' is not a date")
                if _parse_uuid(e['payer'], 'expenses.payer') not in listed:
                    raise InvalidSnapshotError(f"Expense {e['id']}: payer is not a group member")
                amount = _parse_decimal(e['amount'], 'expenses.amount')
                shares = [_parse_decimal(s['amount'], 'expenses.shares.amount') for s in e['shares']]
                if sum(shares, Decimal('0')) != amount:
                    raise InvalidSnapshotError(f"Expense {e['id']}: shares do not sum to the amount")
                for s in e['shares']:
                    if _parse_uuid(s['member'], 'expenses.shares.member') not in listed:
                        raise InvalidSnapshotError(f"Expense {e['id']}: share for a non-member")
                    _parse_decimal(s.get('weight'), 'expenses.shares.weight', allow_none=True)

        for t in state.get('transactions', []):
            _parse_uuid(t['id'], 'transactions.id')
            group = _parse_optional_uuid(t.get('group'), 'transactions.group')
            if group is not None and group not in group_ids:
                raise InvalidSnapshotError(f"Transaction {t['id']}: unknown group")
            for field in ('from_member', 'to_member'):
                if _parse_uuid(t[field], f'transactions.{field}') not in member_ids:
                    raise InvalidSnapshotError(f"Transaction {t['id']}: unknown {field}")
            _parse_decimal(t['amount'], 'transactions.amount')
            _parse_choice(t['kind'], TransactionKind.values, 'transactions.kind')
            _parse_choice(t['status'], TransactionStatus.values, 'transactions.status')

        for msg in state.get('messages', []):
            _parse_uuid(msg['id'], 'messages.id')
            if _parse_uuid(msg['group'], 'messages.group') not in group_ids:
                raise InvalidSnapshotError(f"Message {msg['id']}: unknown group")
            sender = _parse_optional_uuid(msg.get('sender'), 'messages.sender')
            if sender is not None and sender not in member_ids:
                raise InvalidSnapshotError(f"Message {msg['id']}: unknown sender")
            expense = _parse_optional_uuid(msg.get('related_expense'), 'messages.related_expense')
            if expense is not None and expense not in expense_ids:
                raise InvalidSnapshotError(f"Message {msg['id']}: unknown expense")
            _parse_choice(msg['kind'], MessageKind.values, 'messages.kind')
    except (KeyError, TypeError) as e:
        raise InvalidSnapshotError(f"Malformed snapshot: {e!r}")


@transaction.atomic
def load_state(state: dict) -> dict:
    """
    Replace the stored ledger with a snapshot.

    Catalog members are upserted by id so links to auth users survive.
    Everything else is deleted and recreated in snapshot order.

    Returns:
        Counts of loaded members, groups, expenses, transactions and messages

    Raises:
        InvalidSnapshotError: If the snapshot is malformed or inconsistent
    """
    _validate(state)

    ChatMessage.objects.all().delete()
    Transaction.objects.all().delete()
    ExpenseShare.objects.all().delete()
    Expense.objects.all().delete()
    GroupMember.objects.all().delete()
    Group.objects.all().delete()

    for m in state.get('members', []):
        Member.objects.update_or_create(
            id=m['id'],
            defaults={'name': m['name'], 'contact_id': m.get('contact_id') or ''},
        )

    expense_count = 0
    for g in state.get('groups', []):
        group = Group.objects.create(
            id=g['id'],
            name=g['name'],
            owner_id=g['owner'],
            budget=_parse_decimal(g.get('budget'), 'budget', allow_none=True),
            currency=g['currency'],
            color=g['color'],
            closed=bool(g['closed']),
            closed_at=_parse_datetime(g.get('closed_at'), 'closed_at'),
        )
        if g.get('created_at'):
            Group.objects.filter(pk=group.pk).update(
                created_at=_parse_datetime(g['created_at'], 'created_at')
            )

        GroupMember.objects.bulk_create([
            GroupMember(
                group=group,
                member_id=gm['member'],
                balance=Decimal(str(gm['balance'])),
                position=gm.get('position', index),
            )
            for index, gm in enumerate(g['members'])
        ])

        for index, e in enumerate(g['expenses']):
            expense = Expense.objects.create(
                id=e['id'],
                group=group,
                payer_id=e['payer'],
                description=e['description'],
                amount=Decimal(str(e['amount'])),
                split_mode=e['split_mode'],
                category=e['category'],
                date=parse_date(str(e['date'])),
                position=e.get('position', index),
            )
            ExpenseShare.objects.bulk_create([
                ExpenseShare(
                    expense=expense,
                    member_id=s['member'],
                    weight=_parse_decimal(s.get('weight'), 'weight', allow_none=True),
                    amount=Decimal(str(s['amount'])),
                    position=position,
                )
                for position, s in enumerate(e['shares'])
            ])
            expense_count += 1

    for t in state.get('transactions', []):
        txn = Transaction.objects.create(
            reference=t['id'],
            group_id=t.get('group'),
            from_member_id=t['from_member'],
            to_member_id=t['to_member'],
            amount=Decimal(str(t['amount'])),
            kind=t['kind'],
            status=t['status'],
            description=t.get('description', ''),
        )
        if t.get('created_at'):
            Transaction.objects.filter(pk=txn.pk).update(
                created_at=_parse_datetime(t['created_at'], 'created_at')
            )

    for msg in state.get('messages', []):
        message = ChatMessage.objects.create(
            reference=msg['id'],
            group_id=msg['group'],
            sender_id=msg.get('sender'),
            sender_name=msg['sender_name'],
            content=msg['content'],
            kind=msg['kind'],
            related_expense_id=msg.get('related_expense'),
        )
        if msg.get('timestamp'):
            ChatMessage.objects.filter(pk=message.pk).update(
                timestamp=_parse_datetime(msg['timestamp'], 'timestamp')
            )

    counts = {
        'members': len(state.get('members', [])),
        'groups': len(state.get('groups', [])),
        'expenses': expense_count,
        'transactions': len(state.get('transactions', [])),
        'messages': len(state.get('messages', [])),
    }
    logger.info("Ledger snapshot loaded: %s", counts)
    return counts
