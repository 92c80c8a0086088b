import pytest
from decimal import Decimal

from apps.expenses.services import ExpenseLedgerService


@pytest.fixture
def add_expense(trip):
    """Add an expense to the trip with sensible defaults."""
    def _add(payer, amount, **kwargs):
        kwargs.setdefault('description', 'Dinner')
        kwargs.setdefault('group_id', trip.id)
        return ExpenseLedgerService.add_expense(
            payer_id=payer.id,
            amount=Decimal(amount),
            **kwargs
        )
    return _add

