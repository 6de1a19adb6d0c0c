"""Tests for page access rules and two-stage input validation."""

from decimal import Decimal
from uuid import uuid4

import pytest

from bizflow.auth.permissions import (
    DASHBOARD_PATH,
    USERS_PATH,
    all_manageable_paths,
    can_access,
    default_permissions,
    effective_permissions,
    normalize_permissions,
    unknown_paths,
)
from bizflow.models.finance import BudgetInput
from bizflow.models.user import AddUserInput, Role, User
from bizflow.services.errors import InvalidInputError
from bizflow.validation import InputValidator


class TestPermissions:
    """Tests for page access rules."""

    def test_default_permissions_by_role(self):
        assert default_permissions(Role.USER) == [DASHBOARD_PATH]
        assert default_permissions(Role.SUPERADMIN) == all_manageable_paths()

    def test_users_page_is_not_grantable(self):
        assert USERS_PATH not in all_manageable_paths()
        assert unknown_paths([USERS_PATH, "/budgets"]) == [USERS_PATH]

    def test_normalize_adds_dashboard_and_dedupes(self):
        """Test that `/` is always present and order is stable."""
        assert normalize_permissions(["/reports", "/budgets", "/reports"]) == [
            "/",
            "/budgets",
            "/reports",
        ]

    def test_normalize_empty_list(self):
        assert normalize_permissions([]) == ["/"]

    def test_superadmin_can_access_everything(self):
        admin = User(username="admin", role=Role.SUPERADMIN, permissions=[])
        assert can_access(admin, USERS_PATH)
        assert can_access(admin, "/reports")
        assert effective_permissions(admin) == all_manageable_paths()

    def test_user_limited_to_stored_paths(self):
        user = User(username="alice", role=Role.USER, permissions=["/", "/budgets"])
        assert can_access(user, "/budgets")
        assert not can_access(user, "/reports")
        assert not can_access(user, USERS_PATH)
        assert effective_permissions(user) == ["/", "/budgets"]

    def test_users_page_denied_even_if_stored(self):
        user = User(username="alice", role=Role.USER, permissions=["/", USERS_PATH])
        assert not can_access(user, USERS_PATH)


class TestInputValidator:
    """Tests for InputValidator."""

    def test_parse_returns_model(self):
        validator = InputValidator()
        data = validator.parse(
            AddUserInput,
            "user",
            {"username": "alice", "password": "secret1", "role": "user"},
        )
        assert data.username == "alice"

    def test_parse_strips_value_error_prefix(self):
        """Test the combined message of custom validator errors."""
        validator = InputValidator()
        with pytest.raises(InvalidInputError) as exc_info:
            validator.parse(
                AddUserInput,
                "user",
                {"username": "ab", "password": "123", "role": "user"},
            )

        error = exc_info.value
        assert str(error) == (
            "Invalid user data: Username must be at least 3 characters, "
            "Password must be at least 6 characters"
        )
        assert [issue["field"] for issue in error.issues] == ["username", "password"]

    def test_parse_names_field_for_builtin_errors(self):
        validator = InputValidator()
        with pytest.raises(InvalidInputError, match="Invalid budget data: period:"):
            validator.parse(
                BudgetInput,
                "budget",
                {
                    "user_id": uuid4(),
                    "category": "Rent",
                    "amount": Decimal("10"),
                    "period": "weekly",
                },
            )

    def test_check_permissions_accepts_manageable_paths(self):
        InputValidator().check_permissions(["/", "/budgets", "/calendar"])

    def test_check_permissions_rejects_unknown_paths(self):
        with pytest.raises(InvalidInputError) as exc_info:
            InputValidator().check_permissions(["/budgets", "/admin"])

        assert str(exc_info.value) == "Invalid permissions data: Unknown page path: /admin"
        assert exc_info.value.issues[0]["field"] == "permissions"
