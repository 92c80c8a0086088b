"""
Domain-specific exceptions for members app.
"""


class MembersServiceError(Exception):
    """Base exception for all members service errors."""
    pass


class MemberNotFoundError(MembersServiceError):
    """Raised when a catalog member does not exist."""
    pass
