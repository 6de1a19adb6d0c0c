"""Tests for the audit logger and its SQL storage."""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import pytest

from bizflow.audit import AuditLogger
from bizflow.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from bizflow.services.errors import InvalidInputError, PermissionDeniedError
from bizflow.services.storage import AuditStorageInterface, StorageError


class FailingAuditStorage(AuditStorageInterface):
    """Storage that refuses every write."""

    async def append_event(self, event: AuditEvent) -> bool:
        raise StorageError("disk full")

    async def get_events_by_entity(self, entity_type: str, entity_id: UUID) -> list[AuditEvent]:
        return []

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return []


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_log_without_storage(self, run):
        logger = AuditLogger()
        event = AuditEventBuilder.user_deleted(uuid4(), uuid4())

        assert logger.has_storage is False
        assert run(logger.log(event)) is True
        assert run(logger.get_recent_events()) == []

    def test_log_persists_event(self, run, audit_logger, audit_storage):
        user_id = uuid4()
        actor_id = uuid4()
        run(audit_logger.log_user_created(user_id, "alice", "user", actor_id))

        events = run(audit_storage.get_events_by_entity("user", user_id))
        assert len(events) == 1
        assert events[0].event_type == AuditEventType.USER_CREATED
        assert events[0].actor_id == actor_id
        assert events[0].details == {"username": "alice", "role": "user"}

    def test_storage_failure_does_not_raise(self, run):
        logger = AuditLogger(FailingAuditStorage())
        event = AuditEventBuilder.login_failed("mallory")
        assert run(logger.log(event)) is False

    def test_recent_events_newest_first(self, run, audit_logger):
        for username in ("first", "second", "third"):
            run(audit_logger.log_login_failed(username))

        events = run(audit_logger.get_recent_events(limit=2))
        assert len(events) == 2
        assert events[0].timestamp >= events[1].timestamp

    def test_error_event_keeps_message(self, run, audit_logger):
        run(audit_logger.log_error(
            error_type="StorageError",
            error_message="database is locked",
            details={"action": "Failed to add user."},
        ))

        event = run(audit_logger.get_recent_events())[0]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.error_message == "database is locked"
        assert event.details["action"] == "Failed to add user."


class TestActionAuditing:
    """Every refused action leaves an audit record."""

    def _types(self, run, audit_logger, actor_id: Optional[UUID] = None) -> list:
        return [
            e.event_type
            for e in run(audit_logger.get_recent_events())
            if actor_id is None or e.actor_id == actor_id
        ]

    def test_ownership_refusal(self, run, budgets, alice, bob, audit_logger):
        budget, _ = run(budgets.add_or_update_budget(alice.id, "Rent", Decimal("10"), "monthly"))
        with pytest.raises(PermissionDeniedError):
            run(budgets.delete_budget(budget.id, bob.id))

        assert AuditEventType.ACCESS_DENIED in self._types(run, audit_logger, bob.id)

    def test_validation_refusal(self, run, transactions, alice, audit_logger):
        with pytest.raises(InvalidInputError):
            run(transactions.add_transaction(alice.id, "expense", "", Decimal("1"), date(2024, 1, 1)))

        assert AuditEventType.VALIDATION_FAILED in self._types(run, audit_logger, alice.id)
