"""
Domain exceptions for chat app.
"""


class ChatServiceError(Exception):
    """Base exception for chat service errors."""
    pass


class EmptyMessageError(ChatServiceError):
    """Raised when a message has no content."""
    pass
