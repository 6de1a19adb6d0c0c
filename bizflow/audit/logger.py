"""
Audit Logger

DESIGN DECISION: Every state change and every refused action is logged.
This provides:
1. Complete traceability of who changed what
2. Debugging capability
3. A visible history for superadmins

The audit logger:
- Always logs locally through structlog
- Persists to the audit_events table when storage is configured
- Never lets a persistence failure break the action being audited
"""

from typing import Optional
from uuid import UUID

import structlog

from bizflow.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from bizflow.services.storage.interface import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The relational store (for persistence and the audit page)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("bizflow.audit")

    @property
    def has_storage(self) -> bool:
        return self._storage is not None

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_login_succeeded(self, user_id: UUID, username: str) -> None:
        await self.log(AuditEventBuilder.login_succeeded(user_id, username))

    async def log_login_failed(self, username: str) -> None:
        await self.log(AuditEventBuilder.login_failed(username))

    async def log_access_denied(
        self,
        actor_id: Optional[UUID],
        action: str,
        reason: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[UUID] = None,
    ) -> None:
        """Log a refused action (role, ownership or invariant)."""
        event = AuditEventBuilder.access_denied(
            actor_id=actor_id,
            action=action,
            reason=reason,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        await self.log(event)

    async def log_user_created(
        self,
        user_id: UUID,
        username: str,
        role: str,
        actor_id: UUID,
    ) -> None:
        event = AuditEventBuilder.user_created(
            user_id=user_id,
            username=username,
            role=role,
            actor_id=actor_id,
        )
        await self.log(event)

    async def log_user_updated(
        self,
        user_id: UUID,
        changed_fields: list[str],
        actor_id: UUID,
    ) -> None:
        event = AuditEventBuilder.user_updated(
            user_id=user_id,
            changed_fields=changed_fields,
            actor_id=actor_id,
        )
        await self.log(event)

    async def log_user_deleted(self, user_id: UUID, actor_id: UUID) -> None:
        await self.log(AuditEventBuilder.user_deleted(user_id, actor_id))

    async def log_permissions_updated(
        self,
        user_id: UUID,
        permissions: list[str],
        actor_id: UUID,
    ) -> None:
        event = AuditEventBuilder.permissions_updated(
            user_id=user_id,
            permissions=permissions,
            actor_id=actor_id,
        )
        await self.log(event)

    async def log_transaction_added(
        self,
        transaction_id: UUID,
        transaction_type: str,
        amount: str,
        actor_id: UUID,
    ) -> None:
        event = AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            actor_id=actor_id,
        )
        await self.log(event)

    async def log_transaction_deleted(
        self,
        transaction_id: UUID,
        actor_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(transaction_id, actor_id))

    async def log_budget_saved(
        self,
        budget_id: UUID,
        category: str,
        period: str,
        amount: str,
        created: bool,
        actor_id: UUID,
    ) -> None:
        """Log a budget insert or in-place update."""
        event = AuditEventBuilder.budget_saved(
            budget_id=budget_id,
            category=category,
            period=period,
            amount=amount,
            created=created,
            actor_id=actor_id,
        )
        await self.log(event)

    async def log_budget_deleted(self, budget_id: UUID, actor_id: UUID) -> None:
        await self.log(AuditEventBuilder.budget_deleted(budget_id, actor_id))

    async def log_validation_failed(
        self,
        entity_type: str,
        issues: list[dict],
        actor_id: Optional[UUID] = None,
    ) -> None:
        """Log validation failure."""
        event = AuditEventBuilder.validation_failed(
            entity_type=entity_type,
            issues=issues,
            actor_id=actor_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        actor_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            actor_id=actor_id,
        )
        await self.log(event)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Newest persisted events first; empty without storage."""
        if not self._storage:
            return []
        return await self._storage.get_recent_events(limit=limit)

