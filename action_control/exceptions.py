"""
Exception types shared across action-control.
"""
from typing import Optional


class ActionControlError(Exception):
    """Base exception for action-control errors."""
    pass


class PolicyParseError(ActionControlError):
    """Raised when a policy document is not well-formed."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        self.message = message
        super().__init__(f"{source}: {message}" if source else message)


class InvalidInputError(ActionControlError):
    """Raised for unsupported policy modes, output formats or repository names."""
    pass


class TransportError(ActionControlError):
    """Raised when the repository content provider cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(TransportError):
    """The requested repository content does not exist."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class WorkflowParseError(ActionControlError):
    """Raised when a single workflow file cannot be interpreted."""
    pass


class FatalConfigError(ActionControlError):
    """Missing token or target; nothing can be processed."""
    pass
