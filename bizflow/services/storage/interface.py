"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the action layer decoupled from SQLAlchemy
2. Use an in-memory SQLite database for testing
3. Point the same code at PostgreSQL in production

The interface is intentionally simple - only the operations the action
layer needs. Every list operation is scoped to one owner; there is no
"list everything" for transactions or budgets.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from bizflow.models.audit import AuditEvent
from bizflow.models.finance import Budget, BudgetPeriod, Transaction
from bizflow.models.user import UserRecord


class UserStorageInterface(ABC):
    """
    Abstract interface for user storage operations.

    Username lookups are case-insensitive everywhere.
    """

    @abstractmethod
    async def create_user(self, user: UserRecord) -> UserRecord:
        """
        Insert a new user.

        Raises:
            DuplicateError: If the username exists ignoring case
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def get_user_by_id(self, user_id: UUID) -> Optional[UserRecord]:
        """Retrieve a user by ID, or None."""
        pass

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        """Retrieve a user by username ignoring case, or None."""
        pass

    @abstractmethod
    async def username_exists(
        self,
        username: str,
        exclude_user_id: Optional[UUID] = None,
    ) -> bool:
        """
        Check whether a username is taken ignoring case.

        Args:
            username: Name to look for
            exclude_user_id: User to ignore (the one being renamed)
        """
        pass

    @abstractmethod
    async def list_users(self) -> list[UserRecord]:
        """All users ordered by username."""
        pass

    @abstractmethod
    async def update_user(self, user: UserRecord) -> UserRecord:
        """
        Overwrite username, password hash, role and permissions.

        Raises:
            NotFoundError: If the user doesn't exist
            DuplicateError: If the new username is taken
        """
        pass

    @abstractmethod
    async def delete_user(self, user_id: UUID) -> bool:
        """
        Delete a user together with their transactions and budgets.

        Raises:
            NotFoundError: If the user doesn't exist
        """
        pass

    @abstractmethod
    async def count_users(self) -> int:
        pass

    @abstractmethod
    async def count_superadmins(self) -> int:
        pass


class TransactionStorageInterface(ABC):
    """Abstract interface for transaction storage operations."""

    @abstractmethod
    async def add_transaction(self, transaction: Transaction) -> Transaction:
        """
        Insert a transaction.

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def get_transaction_by_id(
        self,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        pass

    @abstractmethod
    async def list_transactions(
        self,
        user_id: UUID,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        """
        List one user's transactions, newest date first.

        Args:
            user_id: Owner
            date_from: Only transactions on or after this date
            date_to: Only transactions on or before this date
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: UUID) -> bool:
        """
        Delete a transaction by ID.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass


class BudgetStorageInterface(ABC):
    """
    Abstract interface for budget storage operations.

    (user_id, lower(category), period) is unique.
    """

    @abstractmethod
    async def get_budget_by_id(self, budget_id: UUID) -> Optional[Budget]:
        pass

    @abstractmethod
    async def find_budget(
        self,
        user_id: UUID,
        category: str,
        period: BudgetPeriod,
    ) -> Optional[Budget]:
        """Find the budget matching user, category ignoring case, and period."""
        pass

    @abstractmethod
    async def list_budgets(self, user_id: UUID) -> list[Budget]:
        """One user's budgets ordered by category, then period."""
        pass

    @abstractmethod
    async def create_budget(self, budget: Budget) -> Budget:
        """
        Insert a budget.

        Raises:
            DuplicateError: If the user already has this category and period
        """
        pass

    @abstractmethod
    async def update_budget(self, budget: Budget) -> Budget:
        """
        Overwrite category, amount and due date of an existing budget.

        Raises:
            NotFoundError: If the budget doesn't exist
        """
        pass

    @abstractmethod
    async def delete_budget(self, budget_id: UUID) -> bool:
        """
        Delete a budget by ID.

        Raises:
            NotFoundError: If the budget doesn't exist
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'user', 'budget')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
