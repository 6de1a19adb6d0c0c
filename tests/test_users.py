"""Tests for user management actions."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from bizflow.auth import all_manageable_paths
from bizflow.models.audit import AuditEventType
from bizflow.models.user import Role, UserRecord
from bizflow.services.errors import (
    ConflictError,
    InvalidInputError,
    PermissionDeniedError,
    RecordNotFoundError,
)
from bizflow.services.users import (
    CANNOT_DELETE_LAST_SUPERADMIN,
    CANNOT_DELETE_SELF,
    CANNOT_DEMOTE_LAST_SUPERADMIN,
    NO_UPDATE_DATA,
    SUPERADMIN_ONLY,
    USERNAME_TAKEN,
)

USER_PASSWORD = "alice-secret"


class TestAddUser:
    """Tests for UserService.add_user."""

    def test_add_regular_user(self, alice):
        """Test that a new user only gets the dashboard."""
        assert alice.username == "alice"
        assert alice.role == Role.USER
        assert alice.permissions == ["/"]

    def test_add_superadmin_gets_every_page(self, run, users, superadmin):
        admin2 = run(users.add_user(superadmin, "admin2", "secret1", Role.SUPERADMIN))
        assert admin2.permissions == all_manageable_paths()

    def test_add_user_requires_superadmin(self, run, users, alice, audit_logger):
        with pytest.raises(PermissionDeniedError, match=SUPERADMIN_ONLY):
            run(users.add_user(alice, "mallory", "secret1", Role.USER))

        events = run(audit_logger.get_recent_events())
        assert any(
            e.event_type == AuditEventType.ACCESS_DENIED and e.actor_id == alice.id
            for e in events
        )

    def test_duplicate_username_ignores_case(self, run, users, superadmin, alice):
        with pytest.raises(ConflictError, match=USERNAME_TAKEN):
            run(users.add_user(superadmin, "ALICE", "secret1", Role.USER))

    def test_duplicate_username_ignores_accented_case(self, run, users, superadmin):
        """Test that case folding also covers letters outside ASCII."""
        run(users.add_user(superadmin, "Émile", "secret1", Role.USER))

        with pytest.raises(ConflictError, match=USERNAME_TAKEN):
            run(users.add_user(superadmin, "émile", "secret1", Role.USER))

    def test_invalid_input_is_rejected_and_audited(self, run, users, superadmin, audit_logger):
        with pytest.raises(InvalidInputError, match="Invalid user data"):
            run(users.add_user(superadmin, "al", "123", Role.USER))

        events = run(audit_logger.get_recent_events())
        assert any(e.event_type == AuditEventType.VALIDATION_FAILED for e in events)

    def test_missing_role_is_rejected(self, run, users, superadmin):
        with pytest.raises(InvalidInputError, match="role"):
            run(users.add_user(superadmin, "carol", "secret1", None))


class TestListUsers:
    """Tests for UserService.list_users."""

    def test_list_users_ordered_without_hashes(self, run, users, superadmin, alice, bob):
        listed = run(users.list_users(superadmin))

        assert [u.username for u in listed] == ["admin", "alice", "bob"]
        assert not any(isinstance(u, UserRecord) for u in listed)

    def test_list_users_requires_superadmin(self, run, users, alice):
        with pytest.raises(PermissionDeniedError):
            run(users.list_users(alice))

    def test_get_user_for_auth_includes_hash(self, run, users, alice):
        record = run(users.get_user_for_auth("Alice"))
        assert record.id == alice.id
        assert record.password_hash


class TestUpdateUser:
    """Tests for UserService.update_user."""

    def test_nothing_to_update(self, run, users, superadmin, alice):
        with pytest.raises(InvalidInputError, match=NO_UPDATE_DATA):
            run(users.update_user(superadmin, alice.id, username="", password=""))

    def test_rename(self, run, users, superadmin, alice):
        updated = run(users.update_user(superadmin, alice.id, username="alicia"))
        assert updated.username == "alicia"
        assert updated.permissions == ["/"]

    def test_rename_to_taken_username(self, run, users, superadmin, alice, bob):
        with pytest.raises(ConflictError, match=USERNAME_TAKEN):
            run(users.update_user(superadmin, alice.id, username="BOB"))

    def test_rename_keeping_own_name_in_new_case(self, run, users, superadmin, alice):
        updated = run(users.update_user(superadmin, alice.id, username="Alice"))
        assert updated.username == "Alice"

    def test_empty_password_keeps_current(self, run, users, auth, superadmin, alice):
        run(users.update_user(superadmin, alice.id, username="alicia", password=""))
        assert run(auth.login("alicia", USER_PASSWORD)).id == alice.id

    def test_password_change(self, run, users, auth, superadmin, alice):
        run(users.update_user(superadmin, alice.id, password="new-secret"))
        assert run(auth.login("alice", "new-secret")).id == alice.id

    def test_role_change_resets_permissions(self, run, users, superadmin, alice):
        run(users.update_permissions(superadmin, alice.id, ["/budgets"]))

        promoted = run(users.update_user(superadmin, alice.id, role=Role.SUPERADMIN))
        assert promoted.role == Role.SUPERADMIN
        assert promoted.permissions == all_manageable_paths()

        demoted = run(users.update_user(superadmin, alice.id, role="user"))
        assert demoted.permissions == ["/"]

    def test_same_role_keeps_permissions(self, run, users, superadmin, alice):
        run(users.update_permissions(superadmin, alice.id, ["/budgets"]))
        updated = run(users.update_user(superadmin, alice.id, role=Role.USER))
        assert updated.permissions == ["/", "/budgets"]

    def test_cannot_demote_last_superadmin(self, run, users, superadmin):
        with pytest.raises(PermissionDeniedError, match=CANNOT_DEMOTE_LAST_SUPERADMIN):
            run(users.update_user(superadmin, superadmin.id, role=Role.USER))

    def test_unknown_user(self, run, users, superadmin):
        with pytest.raises(RecordNotFoundError):
            run(users.update_user(superadmin, uuid4(), username="ghost"))

    def test_update_is_audited(self, run, users, superadmin, alice, audit_storage):
        run(users.update_user(superadmin, alice.id, username="alicia", password="new-secret"))

        events = run(audit_storage.get_events_by_entity("user", alice.id))
        updated = [e for e in events if e.event_type == AuditEventType.USER_UPDATED]
        assert updated[-1].details["changed_fields"] == ["username", "password"]


class TestDeleteUser:
    """Tests for UserService.delete_user."""

    def test_delete_user(self, run, users, user_storage, superadmin, alice):
        run(users.delete_user(superadmin, alice.id))
        assert run(user_storage.get_user_by_id(alice.id)) is None

    def test_cannot_delete_self(self, run, users, superadmin):
        with pytest.raises(PermissionDeniedError, match=CANNOT_DELETE_SELF):
            run(users.delete_user(superadmin, superadmin.id))

    def test_delete_other_superadmin(self, run, users, user_storage, superadmin):
        admin2 = run(users.add_user(superadmin, "admin2", "secret1", Role.SUPERADMIN))
        run(users.delete_user(superadmin, admin2.id))
        assert run(user_storage.count_superadmins()) == 1

    def test_cannot_delete_last_superadmin(self, run, users, superadmin):
        """Test the guard with an actor whose own role changed meanwhile."""
        admin2 = run(users.add_user(superadmin, "admin2", "secret1", Role.SUPERADMIN))
        run(users.update_user(admin2, superadmin.id, role=Role.USER))

        # `superadmin` still holds its stale superadmin view
        with pytest.raises(PermissionDeniedError, match=CANNOT_DELETE_LAST_SUPERADMIN):
            run(users.delete_user(superadmin, admin2.id))

    def test_delete_unknown_user(self, run, users, superadmin):
        with pytest.raises(RecordNotFoundError):
            run(users.delete_user(superadmin, uuid4()))

    def test_delete_removes_owned_rows(
        self, run, users, transactions, budgets, superadmin, alice, transaction_storage
    ):
        run(transactions.add_transaction(alice.id, "expense", "Food", Decimal("10"), date(2024, 12, 1)))
        run(budgets.add_or_update_budget(alice.id, "Food", Decimal("100"), "monthly"))

        run(users.delete_user(superadmin, alice.id))

        assert run(transaction_storage.list_transactions(alice.id)) == []
        assert run(budgets.get_budgets(alice.id)) == []


class TestUpdatePermissions:
    """Tests for UserService.update_permissions."""

    def test_permissions_are_normalized(self, run, users, superadmin, alice):
        updated = run(users.update_permissions(
            superadmin, alice.id, ["/reports", "/budgets", "/reports"]
        ))
        assert updated.permissions == ["/", "/budgets", "/reports"]

    def test_unknown_path_is_rejected(self, run, users, superadmin, alice):
        with pytest.raises(InvalidInputError, match="Unknown page path: /users"):
            run(users.update_permissions(superadmin, alice.id, ["/users"]))

    def test_superadmin_target_keeps_every_page(self, run, users, superadmin):
        updated = run(users.update_permissions(superadmin, superadmin.id, ["/"]))
        assert updated.permissions == all_manageable_paths()

    def test_requires_superadmin(self, run, users, alice, bob):
        with pytest.raises(PermissionDeniedError):
            run(users.update_permissions(alice, bob.id, ["/budgets"]))

    def test_unknown_user(self, run, users, superadmin):
        with pytest.raises(RecordNotFoundError):
            run(users.update_permissions(superadmin, uuid4(), ["/budgets"]))
