"""
Budget Actions

Budgets are keyed by (user, category ignoring case, period). Saving a
budget for a key that already exists updates it in place; there is
never more than one row per key.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

from bizflow.audit import AuditLogger
from bizflow.models.finance import Budget, BudgetInput, BudgetPeriod
from bizflow.services.base import ActionService
from bizflow.services.errors import RecordNotFoundError
from bizflow.services.storage import (
    BudgetStorageInterface,
    DuplicateError,
    NotFoundError,
    StorageError,
)
from bizflow.validation import InputValidator


IDS_REQUIRED = "Budget ID and User ID are required."
BUDGET_NOT_FOUND = "Budget not found."
NOT_OWNER = "User does not have permission to delete this budget."
OWNER_NOT_FOUND = "User not found."


class BudgetService(ActionService):
    """Owner-scoped budget operations."""

    def __init__(
        self,
        budget_storage: BudgetStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[InputValidator] = None,
    ):
        super().__init__(audit_logger, validator)
        self._budgets = budget_storage

    async def get_budgets(self, user_id: Optional[UUID]) -> list[Budget]:
        """The user's budgets ordered by category, then period."""
        if not user_id:
            return []
        try:
            return await self._budgets.list_budgets(user_id)
        except StorageError as e:
            raise await self._storage_failed("Failed to fetch budgets.", e, user_id) from e

    async def _update_existing(self, existing: Budget, data: BudgetInput) -> Budget:
        # Category casing follows the latest save; due date only when given
        return await self._budgets.update_budget(
            existing.model_copy(
                update={
                    "category": data.category,
                    "amount": data.amount,
                    "due_date": data.due_date if data.due_date is not None else existing.due_date,
                    "updated_at": datetime.utcnow(),
                }
            )
        )

    async def add_or_update_budget(
        self,
        user_id: Optional[UUID],
        category: str,
        amount: Union[Decimal, str, float, None],
        period: Union[BudgetPeriod, str, None],
        due_date: Optional[date] = None,
    ) -> tuple[Budget, bool]:
        """
        Insert a budget or update the one with the same key.

        Returns:
            (budget, created) - created is False when an existing row was updated

        Raises:
            InvalidInputError: Empty category, negative amount or bad period
            RecordNotFoundError: The owning user doesn't exist
        """
        data = await self._parse(
            BudgetInput,
            "budget",
            {
                "user_id": user_id,
                "category": category,
                "amount": amount,
                "period": period,
                "due_date": due_date,
            },
            user_id,
        )

        try:
            existing = await self._budgets.find_budget(data.user_id, data.category, data.period)
            if existing:
                saved, created = await self._update_existing(existing, data), False
            else:
                try:
                    saved = await self._budgets.create_budget(
                        Budget(
                            user_id=data.user_id,
                            category=data.category,
                            amount=data.amount,
                            period=data.period,
                            due_date=data.due_date,
                        )
                    )
                    created = True
                except NotFoundError as e:
                    raise RecordNotFoundError(OWNER_NOT_FOUND) from e
                except DuplicateError:
                    # Inserted concurrently since find_budget; update that row instead
                    existing = await self._budgets.find_budget(
                        data.user_id, data.category, data.period
                    )
                    if existing is None:
                        raise
                    saved, created = await self._update_existing(existing, data), False
        except NotFoundError as e:
            raise RecordNotFoundError(BUDGET_NOT_FOUND) from e
        except StorageError as e:
            raise await self._storage_failed("Failed to save budget.", e, data.user_id) from e

        await self._audit_logger.log_budget_saved(
            budget_id=saved.id,
            category=saved.category,
            period=saved.period.value,
            amount=str(saved.amount),
            created=created,
            actor_id=data.user_id,
        )
        return saved, created

    async def delete_budget(
        self,
        budget_id: Optional[UUID],
        user_id: Optional[UUID],
    ) -> None:
        """
        Delete one of the user's budgets.

        Raises:
            InvalidInputError: Either ID is missing
            RecordNotFoundError: No such budget
            PermissionDeniedError: It belongs to someone else
        """
        if not budget_id or not user_id:
            raise await self._invalid("budget", IDS_REQUIRED, user_id)

        try:
            existing = await self._budgets.get_budget_by_id(budget_id)
            if existing is None:
                raise RecordNotFoundError(BUDGET_NOT_FOUND)
            if existing.user_id != user_id:
                raise await self._denied(
                    user_id,
                    "delete_budget",
                    NOT_OWNER,
                    entity_type="budget",
                    entity_id=budget_id,
                )
            await self._budgets.delete_budget(budget_id)
        except NotFoundError as e:
            raise RecordNotFoundError(BUDGET_NOT_FOUND) from e
        except StorageError as e:
            raise await self._storage_failed("Failed to delete budget.", e, user_id) from e

        await self._audit_logger.log_budget_deleted(budget_id, user_id)
