"""Tests for database initialization, seeding and component wiring."""

import pytest

from bizflow.auth import PasswordHasher, all_manageable_paths
from bizflow.config import DatabaseSettings, SeedSettings
from bizflow.models.user import Role
from bizflow.orchestrator import create_app_components
from bizflow.seed import SeedError, init_database, seed_initial_admin
from bizflow.services.storage import SQLClient, SQLUserStorage


class TestInitDatabase:
    """Tests for init_database."""

    def test_creates_tables(self, run):
        client = init_database(SQLClient(DatabaseSettings(url="sqlite://")))
        try:
            assert run(SQLUserStorage(client).count_users()) == 0
        finally:
            client.dispose()

    def test_is_repeatable(self, client):
        assert init_database(client) is client
        assert init_database(client) is client


class TestSeedInitialAdmin:
    """Tests for seed_initial_admin."""

    def test_seeds_superadmin_on_empty_database(self, run, user_storage, hasher):
        settings = SeedSettings(username="Owner", password="Password123")
        admin = run(seed_initial_admin(user_storage, hasher, settings))

        assert admin.username == "Owner"
        assert admin.role == Role.SUPERADMIN
        assert admin.permissions == all_manageable_paths()

        record = run(user_storage.get_user_by_username("owner"))
        assert hasher.verify_password("Password123", record.password_hash)

    def test_skips_when_users_exist(self, run, user_storage, hasher, superadmin):
        settings = SeedSettings(username="Owner", password="Password123")

        assert run(seed_initial_admin(user_storage, hasher, settings)) is None
        assert run(user_storage.count_users()) == 1

    def test_rejects_invalid_credentials(self, run, user_storage, hasher):
        settings = SeedSettings(username="ab", password="short")

        with pytest.raises(SeedError, match="Invalid initial admin data"):
            run(seed_initial_admin(user_storage, hasher, settings))

        assert run(user_storage.count_users()) == 0


class TestCreateAppComponents:
    """Tests for create_app_components."""

    def test_wires_one_database(self, run):
        components = create_app_components(
            database=DatabaseSettings(url="sqlite://"),
            hasher=PasswordHasher(rounds=4),
        )
        try:
            assert components.audit_logger.has_storage is True

            admin = run(seed_initial_admin(
                components.user_storage,
                PasswordHasher(rounds=4),
                SeedSettings(username="admin", password="Password123"),
            ))
            user = run(components.auth.login("admin", "Password123"))
            assert user.id == admin.id

            session = components.new_session()
            assert session.is_authenticated is False
            session.start(user)
            assert run(session.resolve()).id == admin.id
        finally:
            components.client.dispose()

    def test_local_only_audit(self):
        components = create_app_components(
            database=DatabaseSettings(url="sqlite://"),
            persist_audit=False,
        )
        try:
            assert components.audit_logger.has_storage is False
        finally:
            components.client.dispose()
