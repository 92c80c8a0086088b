"""
Domain exceptions for settlements app.

Service errors derive from SettlementServiceError and are converted to
responses in the views. Errors that map one-to-one onto an HTTP status
are DRF APIExceptions.
"""
from rest_framework.exceptions import APIException


class SettlementServiceError(Exception):
    """Base exception for settlement service errors."""
    pass


class AlreadySettledError(SettlementServiceError):
    """Raised when settling up a group that is already closed."""
    pass


class InvalidTransactionError(SettlementServiceError):
    """Raised when a transfer is unusable (same member on both ends)."""
    pass


class TransactionNotFoundError(APIException):
    """Transaction not found."""
    status_code = 404
    default_detail = 'Transaction not found.'
    default_code = 'transaction_not_found'


class InvalidStateTransitionError(APIException):
    """Invalid transaction state transition."""
    status_code = 400
    default_detail = 'Invalid state transition for transaction.'
    default_code = 'invalid_state_transition'
