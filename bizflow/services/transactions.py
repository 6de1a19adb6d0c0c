"""
Transaction Actions

Record, list and delete income/expense entries. A user only ever sees
and deletes their own transactions. There is no edit; a wrong entry is
deleted and re-entered.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

from bizflow.audit import AuditLogger
from bizflow.models.finance import AddTransactionInput, Transaction, TransactionType
from bizflow.services.base import ActionService
from bizflow.services.errors import RecordNotFoundError
from bizflow.services.storage import (
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)
from bizflow.validation import InputValidator


IDS_REQUIRED = "Transaction ID and User ID are required."
TRANSACTION_NOT_FOUND = "Transaction not found."
NOT_OWNER = "User does not have permission to delete this transaction."
OWNER_NOT_FOUND = "User not found."


class TransactionService(ActionService):
    """Owner-scoped transaction operations."""

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[InputValidator] = None,
    ):
        super().__init__(audit_logger, validator)
        self._transactions = transaction_storage

    async def get_transactions(
        self,
        user_id: Optional[UUID],
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        """The user's transactions, newest date first. No user, no rows."""
        if not user_id:
            return []
        try:
            return await self._transactions.list_transactions(
                user_id,
                date_from=date_from,
                date_to=date_to,
            )
        except StorageError as e:
            raise await self._storage_failed("Failed to fetch transactions.", e, user_id) from e

    async def add_transaction(
        self,
        user_id: Optional[UUID],
        type: Union[TransactionType, str, None],
        description: str,
        amount: Union[Decimal, str, float, None],
        date: Optional[date],
    ) -> Transaction:
        """
        Record a transaction.

        Raises:
            InvalidInputError: Missing/empty fields or a non-positive amount
            RecordNotFoundError: The owning user doesn't exist
        """
        data = await self._parse(
            AddTransactionInput,
            "transaction",
            {
                "user_id": user_id,
                "type": type,
                "description": description,
                "amount": amount,
                "date": date,
            },
            user_id,
        )

        transaction = Transaction(
            user_id=data.user_id,
            type=data.type,
            description=data.description,
            amount=data.amount,
            date=data.date,
        )
        try:
            saved = await self._transactions.add_transaction(transaction)
        except NotFoundError as e:
            raise RecordNotFoundError(OWNER_NOT_FOUND) from e
        except StorageError as e:
            raise await self._storage_failed("Failed to add transaction.", e, data.user_id) from e

        await self._audit_logger.log_transaction_added(
            transaction_id=saved.id,
            transaction_type=saved.type.value,
            amount=str(saved.amount),
            actor_id=saved.user_id,
        )
        return saved

    async def delete_transaction(
        self,
        transaction_id: Optional[UUID],
        user_id: Optional[UUID],
    ) -> None:
        """
        Delete one of the user's transactions.

        Raises:
            InvalidInputError: Either ID is missing
            RecordNotFoundError: No such transaction
            PermissionDeniedError: It belongs to someone else
        """
        if not transaction_id or not user_id:
            raise await self._invalid("transaction", IDS_REQUIRED, user_id)

        try:
            existing = await self._transactions.get_transaction_by_id(transaction_id)
            if existing is None:
                raise RecordNotFoundError(TRANSACTION_NOT_FOUND)
            if existing.user_id != user_id:
                raise await self._denied(
                    user_id,
                    "delete_transaction",
                    NOT_OWNER,
                    entity_type="transaction",
                    entity_id=transaction_id,
                )
            await self._transactions.delete_transaction(transaction_id)
        except NotFoundError as e:
            raise RecordNotFoundError(TRANSACTION_NOT_FOUND) from e
        except StorageError as e:
            raise await self._storage_failed("Failed to delete transaction.", e, user_id) from e

        await self._audit_logger.log_transaction_deleted(transaction_id, user_id)
