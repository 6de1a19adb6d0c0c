"""
Database Initialization and Seeding

Creates the schema and, on an empty database, the first superadmin from
INITIAL_ADMIN_USERNAME / INITIAL_ADMIN_PASSWORD. Running it again is
harmless: tables are only created when missing and the admin is only
seeded when there are no users at all.

Usage:
    python -m bizflow.seed
"""

import asyncio
import logging
import sys
from typing import Optional

import structlog

from bizflow.auth.passwords import PasswordHasher
from bizflow.auth.permissions import default_permissions
from bizflow.config import SeedSettings, get_settings
from bizflow.models.user import AddUserInput, Role, User, UserRecord
from bizflow.services.errors import InvalidInputError
from bizflow.services.storage import (
    DuplicateError,
    SQLClient,
    SQLUserStorage,
    StorageError,
    UserStorageInterface,
)
from bizflow.validation import InputValidator


logger = structlog.get_logger("bizflow.seed")


class SeedError(Exception):
    """The initial admin could not be seeded."""
    pass


def init_database(client: Optional[SQLClient] = None) -> SQLClient:
    """Create all missing tables. Returns the client used."""
    client = client or SQLClient()
    client.create_tables()
    logger.info("database_initialized")
    return client


async def seed_initial_admin(
    user_storage: UserStorageInterface,
    hasher: Optional[PasswordHasher] = None,
    settings: Optional[SeedSettings] = None,
) -> Optional[User]:
    """
    Create the first superadmin if the database has no users.

    Returns:
        The new admin, or None when users already exist

    Raises:
        SeedError: If the configured credentials are invalid
    """
    settings = settings or get_settings().seed

    if await user_storage.count_users() > 0:
        logger.info("seed_skipped", reason="users_exist")
        return None

    try:
        credentials = InputValidator().parse(
            AddUserInput,
            "initial admin",
            {
                "username": settings.username,
                "password": settings.password,
                "role": Role.SUPERADMIN,
            },
        )
    except InvalidInputError as e:
        logger.error("seed_aborted", reason=str(e))
        raise SeedError(str(e)) from e

    hasher = hasher or PasswordHasher()
    record = UserRecord(
        username=credentials.username,
        password_hash=hasher.hash_password(credentials.password),
        role=Role.SUPERADMIN,
        permissions=default_permissions(Role.SUPERADMIN),
    )

    try:
        created = await user_storage.create_user(record)
    except DuplicateError:
        logger.warning("seed_skipped", reason="admin_exists", username=credentials.username)
        return None

    logger.info("seed_admin_created", username=created.username)
    return created.to_public()


def main() -> int:
    """Command-line entry point; returns the process exit code."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    client = SQLClient()
    try:
        init_database(client)
        asyncio.run(seed_initial_admin(SQLUserStorage(client)))
    except (SeedError, StorageError) as e:
        logger.error("seed_failed", error=str(e))
        return 1
    finally:
        client.dispose()

    logger.info("seed_finished")
    return 0


if __name__ == "__main__":
    sys.exit(main())
