"""Storage services package."""

from bizflow.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)
from bizflow.services.storage.sql import (
    SQLAuditStorage,
    SQLBudgetStorage,
    SQLClient,
    SQLTransactionStorage,
    SQLUserStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BudgetStorageInterface",
    "TransactionStorageInterface",
    "UserStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "SQLAuditStorage",
    "SQLBudgetStorage",
    "SQLClient",
    "SQLTransactionStorage",
    "SQLUserStorage",
]
