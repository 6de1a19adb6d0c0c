"""
Shared fixtures.

Every test gets its own in-memory SQLite database, so tests never see
each other's rows. bcrypt runs at its minimum cost to keep hashing fast.
"""

import asyncio

import pytest

from bizflow.audit import AuditLogger
from bizflow.auth import AuthService, PasswordHasher, default_permissions
from bizflow.config import DatabaseSettings
from bizflow.models.user import Role, UserRecord
from bizflow.reports import ReportGenerator
from bizflow.services.budgets import BudgetService
from bizflow.services.storage import (
    SQLAuditStorage,
    SQLBudgetStorage,
    SQLClient,
    SQLTransactionStorage,
    SQLUserStorage,
)
from bizflow.services.transactions import TransactionService
from bizflow.services.users import UserService


ADMIN_PASSWORD = "admin-secret"
USER_PASSWORD = "alice-secret"


@pytest.fixture
def run():
    """Run a coroutine to completion."""
    return asyncio.run


@pytest.fixture
def client():
    client = SQLClient(DatabaseSettings(url="sqlite://"))
    client.create_tables()
    yield client
    client.dispose()


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def user_storage(client):
    return SQLUserStorage(client)


@pytest.fixture
def transaction_storage(client):
    return SQLTransactionStorage(client)


@pytest.fixture
def budget_storage(client):
    return SQLBudgetStorage(client)


@pytest.fixture
def audit_storage(client):
    return SQLAuditStorage(client)


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def users(user_storage, hasher, audit_logger):
    return UserService(user_storage, hasher=hasher, audit_logger=audit_logger)


@pytest.fixture
def auth(user_storage, hasher, audit_logger):
    return AuthService(user_storage, hasher=hasher, audit_logger=audit_logger)


@pytest.fixture
def transactions(transaction_storage, audit_logger):
    return TransactionService(transaction_storage, audit_logger=audit_logger)


@pytest.fixture
def budgets(budget_storage, audit_logger):
    return BudgetService(budget_storage, audit_logger=audit_logger)


@pytest.fixture
def reports():
    return ReportGenerator()


@pytest.fixture
def superadmin(run, user_storage, hasher):
    """A superadmin written straight to storage, as the seed does."""
    record = UserRecord(
        username="admin",
        password_hash=hasher.hash_password(ADMIN_PASSWORD),
        role=Role.SUPERADMIN,
        permissions=default_permissions(Role.SUPERADMIN),
    )
    return run(user_storage.create_user(record)).to_public()


@pytest.fixture
def alice(run, users, superadmin):
    """A regular user created through the user service."""
    return run(users.add_user(superadmin, "alice", USER_PASSWORD, Role.USER))


@pytest.fixture
def bob(run, users, superadmin):
    return run(users.add_user(superadmin, "bob", "bob-secret", Role.USER))
