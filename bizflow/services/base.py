"""
Shared plumbing for the action services.

Every refused action and every storage failure goes through here so it
is audited the same way before the caller sees the exception.
"""

from typing import Any, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel

from bizflow.audit import AuditLogger
from bizflow.services.errors import (
    ActionError,
    ConflictError,
    InvalidInputError,
    PermissionDeniedError,
)
from bizflow.services.storage import StorageError
from bizflow.validation import InputValidator


ModelT = TypeVar("ModelT", bound=BaseModel)


class ActionService:
    """Base class for user, transaction and budget services."""

    def __init__(
        self,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[InputValidator] = None,
    ):
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or InputValidator()

    async def _parse(
        self,
        model: type[ModelT],
        entity: str,
        data: dict[str, Any],
        actor_id: Optional[UUID] = None,
    ) -> ModelT:
        """Validate input, auditing the rejection before re-raising it."""
        try:
            return self._validator.parse(model, entity, data)
        except InvalidInputError as e:
            await self._audit_logger.log_validation_failed(entity, e.issues, actor_id)
            raise

    async def _invalid(
        self,
        entity: str,
        message: str,
        actor_id: Optional[UUID] = None,
    ) -> InvalidInputError:
        """Audit an input rule that isn't expressed on the model."""
        issues = [{"field": None, "message": message}]
        await self._audit_logger.log_validation_failed(entity, issues, actor_id)
        return InvalidInputError(message, issues)

    async def _conflict(
        self,
        entity: str,
        message: str,
        actor_id: Optional[UUID] = None,
    ) -> ConflictError:
        issues = [{"field": None, "message": message}]
        await self._audit_logger.log_validation_failed(entity, issues, actor_id)
        return ConflictError(message)

    async def _denied(
        self,
        actor_id: Optional[UUID],
        action: str,
        reason: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[UUID] = None,
    ) -> PermissionDeniedError:
        """Audit a refusal and return the error for the caller to raise."""
        await self._audit_logger.log_access_denied(
            actor_id=actor_id,
            action=action,
            reason=reason,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        return PermissionDeniedError(reason)

    async def _storage_failed(
        self,
        message: str,
        error: StorageError,
        actor_id: Optional[UUID] = None,
    ) -> ActionError:
        """Audit a storage failure and return a user-facing error."""
        await self._audit_logger.log_error(
            error_type=type(error).__name__,
            error_message=str(error),
            details={"action": message},
            actor_id=actor_id,
        )
        return ActionError(message)
