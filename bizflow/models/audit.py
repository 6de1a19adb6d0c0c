"""
Audit Models for BizFlow

Every state change and every refused action is logged for audit purposes.
This provides:
1. Traceability of who changed which record
2. Debugging information when things go wrong
3. A record of denied access attempts

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Authentication
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    ACCESS_DENIED = "access_denied"

    # User management
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    PERMISSIONS_UPDATED = "permissions_updated"

    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"

    # Budgets
    BUDGET_CREATED = "budget_created"
    BUDGET_UPDATED = "budget_updated"
    BUDGET_DELETED = "budget_deleted"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'user', 'transaction', 'budget')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Who did it
    actor_id: Optional[UUID] = Field(
        default=None,
        description="ID of the logged-in user performing the action"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_row(self) -> dict:
        """
        Convert to column values for the audit_events table.

        UUIDs become strings and details are serialized to JSON text.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp,
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "description": self.description,
            "details_json": json.dumps(self.details, default=str) if self.details else None,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.user_created(user_id, "alice", "user", actor_id)
        event = AuditEventBuilder.budget_saved(budget_id, "Rent", "monthly", "500.00", True, actor_id)
    """

    @staticmethod
    def login_succeeded(user_id: UUID, username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            entity_type="user",
            entity_id=user_id,
            actor_id=user_id,
            description=f"User logged in: {username}",
            details={"username": username},
            is_user_action=True,
        )

    @staticmethod
    def login_failed(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"Failed login attempt for: {username}",
            details={"username": username},
            is_user_action=True,
        )

    @staticmethod
    def access_denied(
        actor_id: Optional[UUID],
        action: str,
        reason: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCESS_DENIED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            description=f"Denied: {action}",
            error_message=reason,
            details={"action": action},
            is_user_action=True,
        )

    @staticmethod
    def user_created(
        user_id: UUID,
        username: str,
        role: str,
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CREATED,
            entity_type="user",
            entity_id=user_id,
            actor_id=actor_id,
            description=f"User created: {username} ({role})",
            details={"username": username, "role": role},
            is_user_action=True,
        )

    @staticmethod
    def user_updated(
        user_id: UUID,
        changed_fields: list[str],
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_UPDATED,
            entity_type="user",
            entity_id=user_id,
            actor_id=actor_id,
            description=f"User updated: {', '.join(changed_fields)}",
            details={"changed_fields": changed_fields},
            is_user_action=True,
        )

    @staticmethod
    def user_deleted(user_id: UUID, actor_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=user_id,
            actor_id=actor_id,
            description="User deleted",
            is_user_action=True,
        )

    @staticmethod
    def permissions_updated(
        user_id: UUID,
        permissions: list[str],
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERMISSIONS_UPDATED,
            entity_type="user",
            entity_id=user_id,
            actor_id=actor_id,
            description=f"Permissions set to {len(permissions)} paths",
            details={"permissions": permissions},
            is_user_action=True,
        )

    @staticmethod
    def transaction_added(
        transaction_id: UUID,
        transaction_type: str,
        amount: str,
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_id=actor_id,
            description=f"Transaction added: {transaction_type} {amount}",
            details={"type": transaction_type, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(transaction_id: UUID, actor_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_id=actor_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def budget_saved(
        budget_id: UUID,
        category: str,
        period: str,
        amount: str,
        created: bool,
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.BUDGET_CREATED if created else AuditEventType.BUDGET_UPDATED
            ),
            entity_type="budget",
            entity_id=budget_id,
            actor_id=actor_id,
            description=f"Budget {'created' if created else 'updated'}: {category} ({period}) = {amount}",
            details={"category": category, "period": period, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def budget_deleted(budget_id: UUID, actor_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_DELETED,
            entity_type="budget",
            entity_id=budget_id,
            actor_id=actor_id,
            description="Budget deleted",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        issues: list[dict],
        actor_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            actor_id=actor_id,
            description=f"{entity_type.capitalize()} input rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        actor_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            actor_id=actor_id,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
