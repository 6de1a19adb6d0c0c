"""
Action Layer Errors

Every action either returns a record or raises one of these. The message
is always safe to show to the user as-is; storage details stay in the
chained exception and the audit log.
"""

from typing import Optional


class ActionError(Exception):
    """Base exception for action-layer failures."""
    pass


class InvalidInputError(ActionError):
    """
    Input failed validation.

    Carries the individual issues so they can be audited.
    """

    def __init__(self, message: str, issues: Optional[list[dict]] = None):
        super().__init__(message)
        self.issues = issues or []


class ConflictError(ActionError):
    """The change would violate a uniqueness rule."""
    pass


class PermissionDeniedError(ActionError):
    """The actor may not perform this action."""
    pass


class RecordNotFoundError(ActionError):
    """The record to change does not exist."""
    pass


class AuthenticationError(ActionError):
    """Username/password did not match."""
    pass
