"""
Services package.

Action services live in their own modules (users, transactions, budgets)
and are imported from there; only the error types are re-exported here.
"""

from bizflow.services.errors import (
    ActionError,
    AuthenticationError,
    ConflictError,
    InvalidInputError,
    PermissionDeniedError,
    RecordNotFoundError,
)

__all__ = [
    "ActionError",
    "AuthenticationError",
    "ConflictError",
    "InvalidInputError",
    "PermissionDeniedError",
    "RecordNotFoundError",
]
