"""
Login and Session Handling

A session only ever remembers the user's ID. Role and permissions are
reloaded from storage on every resolve(), so a role change or a deleted
account takes effect on the next page render.
"""

from typing import Optional
from uuid import UUID

from pydantic import ValidationError

from bizflow.audit import AuditLogger
from bizflow.auth.passwords import PasswordHasher
from bizflow.models.user import LoginInput, User
from bizflow.services.errors import AuthenticationError
from bizflow.services.storage import UserStorageInterface


INVALID_CREDENTIALS = "Invalid username or password."


class AuthService:
    """Checks credentials against stored bcrypt hashes."""

    def __init__(
        self,
        user_storage: UserStorageInterface,
        hasher: Optional[PasswordHasher] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._users = user_storage
        self._hasher = hasher or PasswordHasher()
        self._audit_logger = audit_logger or AuditLogger()

    async def login(self, username: str, password: str) -> User:
        """
        Authenticate a user.

        Unknown usernames and wrong passwords fail with the same message.

        Raises:
            AuthenticationError: If the credentials don't match
        """
        try:
            credentials = LoginInput(username=username.strip(), password=password)
        except ValidationError:
            await self._audit_logger.log_login_failed(username)
            raise AuthenticationError(INVALID_CREDENTIALS) from None

        record = await self._users.get_user_by_username(credentials.username)
        if record is None or not self._hasher.verify_password(
            credentials.password, record.password_hash
        ):
            await self._audit_logger.log_login_failed(credentials.username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        await self._audit_logger.log_login_succeeded(record.id, record.username)
        return record.to_public()


class Session:
    """
    The logged-in principal for one browser session.

    Usage:
        session = Session(user_storage)
        session.start(user)
        current = await session.resolve()
    """

    def __init__(
        self,
        user_storage: UserStorageInterface,
        user_id: Optional[UUID] = None,
    ):
        self._users = user_storage
        self._user_id = user_id

    @property
    def user_id(self) -> Optional[UUID]:
        return self._user_id

    @property
    def is_authenticated(self) -> bool:
        return self._user_id is not None

    def start(self, user: User) -> None:
        self._user_id = user.id

    def end(self) -> None:
        self._user_id = None

    async def resolve(self) -> Optional[User]:
        """
        Reload the current user from storage.

        Ends the session when the account no longer exists.
        """
        if self._user_id is None:
            return None

        record = await self._users.get_user_by_id(self._user_id)
        if record is None:
            self.end()
            return None
        return record.to_public()
