"""
Domain-specific exceptions for groups app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class GroupsServiceError(Exception):
    """Base exception for all groups service errors."""
    pass


class GroupNotFoundError(GroupsServiceError):
    """Raised when a group does not exist."""
    pass


class InvalidGroupError(GroupsServiceError):
    """Raised when a group's composition is unusable (no members, owner missing)."""
    pass


class GroupClosedError(GroupsServiceError):
    """Raised when a mutation is attempted on a settled (closed) group."""
    pass


class UnknownMemberError(GroupsServiceError):
    """Raised when a referenced member is not part of the group."""
    pass
