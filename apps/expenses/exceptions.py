"""
Domain exceptions for expenses app.

This module defines the exception hierarchy for ledger errors raised
while recording expenses and splitting them among participants.
"""


class ExpenseServiceError(Exception):
    """Base exception for expense service errors."""
    pass


class InvalidAmountError(ExpenseServiceError):
    """Raised when an amount is not positive or has sub-cent precision."""
    pass


class InvalidSplitError(ExpenseServiceError):
    """Raised when split calculation is invalid."""
    pass


class InvalidExpenseError(ExpenseServiceError):
    """Raised when expense details (description, category) are unusable."""
    pass
