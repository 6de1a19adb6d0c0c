"""
User Management Actions

Superadmin-only operations on user accounts and their page permissions.

Invariants kept here, not in storage:
- At least one superadmin exists at all times
- Nobody deletes their own account
- A regular user's permissions always include `/`
- A superadmin's stored permissions are always the full manageable set
"""

from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from bizflow.audit import AuditLogger
from bizflow.auth.passwords import PasswordHasher
from bizflow.auth.permissions import all_manageable_paths, default_permissions, normalize_permissions
from bizflow.models.user import (
    AddUserInput,
    Role,
    UpdatePermissionsInput,
    UpdateUserInput,
    User,
    UserRecord,
)
from bizflow.services.base import ActionService
from bizflow.services.errors import (
    ConflictError,
    InvalidInputError,
    RecordNotFoundError,
)
from bizflow.services.storage import (
    DuplicateError,
    NotFoundError,
    StorageError,
    UserStorageInterface,
)
from bizflow.validation import InputValidator


SUPERADMIN_ONLY = "Only superadmins can manage users."
USERNAME_TAKEN = "Username already exists."
USER_NOT_FOUND = "User not found."
NO_UPDATE_DATA = "No update data provided."
CANNOT_DELETE_SELF = "Cannot delete your own account."
CANNOT_DELETE_LAST_SUPERADMIN = "Cannot delete the last superadmin."
CANNOT_DEMOTE_LAST_SUPERADMIN = "Cannot demote the last superadmin."


class UserService(ActionService):
    """
    User CRUD guarded by role checks.

    Every method except get_user_for_auth takes the acting user, who must
    be a superadmin.
    """

    def __init__(
        self,
        user_storage: UserStorageInterface,
        hasher: Optional[PasswordHasher] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[InputValidator] = None,
    ):
        super().__init__(audit_logger, validator)
        self._users = user_storage
        self._hasher = hasher or PasswordHasher()

    async def _require_superadmin(self, actor: Optional[User], action: str) -> None:
        if actor is None or not actor.is_superadmin:
            raise await self._denied(
                actor.id if actor else None,
                action,
                SUPERADMIN_ONLY,
                entity_type="user",
            )

    async def _get_existing(self, user_id: UUID) -> UserRecord:
        record = await self._users.get_user_by_id(user_id)
        if record is None:
            raise RecordNotFoundError(USER_NOT_FOUND)
        return record

    async def list_users(self, actor: User) -> list[User]:
        """All users ordered by username, without password hashes."""
        await self._require_superadmin(actor, "list_users")
        try:
            records = await self._users.list_users()
        except StorageError as e:
            raise await self._storage_failed("Failed to fetch users.", e, actor.id) from e
        return [record.to_public() for record in records]

    async def get_user_for_auth(self, username: str) -> Optional[UserRecord]:
        """Case-insensitive lookup including the password hash."""
        try:
            return await self._users.get_user_by_username(username)
        except StorageError as e:
            raise await self._storage_failed("Failed to fetch user.", e) from e

    async def add_user(
        self,
        actor: User,
        username: str,
        password: str,
        role: Union[Role, str, None],
    ) -> User:
        """
        Create a user with the default permissions for their role.

        Raises:
            PermissionDeniedError: Actor is not a superadmin
            InvalidInputError: Username/password too short or role missing
            ConflictError: Username taken ignoring case
        """
        await self._require_superadmin(actor, "add_user")
        data = await self._parse(
            AddUserInput,
            "user",
            {"username": username, "password": password, "role": role},
            actor.id,
        )

        try:
            if await self._users.username_exists(data.username):
                raise await self._conflict("user", USERNAME_TAKEN, actor.id)

            record = UserRecord(
                username=data.username,
                password_hash=self._hasher.hash_password(data.password),
                role=data.role,
                permissions=default_permissions(data.role),
            )
            created = await self._users.create_user(record)
        except DuplicateError as e:
            raise ConflictError(USERNAME_TAKEN) from e
        except StorageError as e:
            raise await self._storage_failed("Failed to add user.", e, actor.id) from e

        await self._audit_logger.log_user_created(
            user_id=created.id,
            username=created.username,
            role=created.role.value,
            actor_id=actor.id,
        )
        return created.to_public()

    async def update_user(
        self,
        actor: User,
        user_id: UUID,
        username: Optional[str] = None,
        password: Optional[str] = None,
        role: Union[Role, str, None] = None,
    ) -> User:
        """
        Change username, password and/or role.

        An empty password keeps the current one. Changing the role resets
        permissions to that role's defaults.

        Raises:
            InvalidInputError: Nothing to change, or a field is invalid
            RecordNotFoundError: Unknown user
            ConflictError: New username taken by someone else
            PermissionDeniedError: Actor isn't a superadmin, or the change
                would remove the last superadmin
        """
        await self._require_superadmin(actor, "update_user")
        data = await self._parse(
            UpdateUserInput,
            "update",
            {"username": username, "password": password, "role": role},
            actor.id,
        )
        if data.is_empty:
            raise await self._invalid("update", NO_UPDATE_DATA, actor.id)

        try:
            current = await self._get_existing(user_id)

            if data.username and await self._users.username_exists(
                data.username, exclude_user_id=user_id
            ):
                raise await self._conflict("user", USERNAME_TAKEN, actor.id)

            changes: dict = {}
            if data.username and data.username != current.username:
                changes["username"] = data.username
            if data.password:
                changes["password_hash"] = self._hasher.hash_password(data.password)
            if data.role and data.role != current.role:
                if (
                    current.role == Role.SUPERADMIN
                    and await self._users.count_superadmins() <= 1
                ):
                    raise await self._denied(
                        actor.id,
                        "update_user",
                        CANNOT_DEMOTE_LAST_SUPERADMIN,
                        entity_type="user",
                        entity_id=user_id,
                    )
                changes["role"] = data.role
                changes["permissions"] = default_permissions(data.role)

            if not changes:
                return current.to_public()

            changes["updated_at"] = datetime.utcnow()
            updated = await self._users.update_user(current.model_copy(update=changes))
        except NotFoundError as e:
            raise RecordNotFoundError(USER_NOT_FOUND) from e
        except DuplicateError as e:
            raise ConflictError(USERNAME_TAKEN) from e
        except StorageError as e:
            raise await self._storage_failed("Failed to update user.", e, actor.id) from e

        changed_fields = [
            "password" if field == "password_hash" else field
            for field in changes
            if field != "updated_at"
        ]
        await self._audit_logger.log_user_updated(
            user_id=user_id,
            changed_fields=changed_fields,
            actor_id=actor.id,
        )
        return updated.to_public()

    async def delete_user(self, actor: User, user_id: UUID) -> None:
        """
        Delete a user and everything they own.

        Raises:
            PermissionDeniedError: Not a superadmin, self-delete, or last superadmin
            RecordNotFoundError: Unknown user
        """
        await self._require_superadmin(actor, "delete_user")
        if user_id == actor.id:
            raise await self._denied(
                actor.id,
                "delete_user",
                CANNOT_DELETE_SELF,
                entity_type="user",
                entity_id=user_id,
            )

        try:
            target = await self._get_existing(user_id)
            if (
                target.role == Role.SUPERADMIN
                and await self._users.count_superadmins() <= 1
            ):
                raise await self._denied(
                    actor.id,
                    "delete_user",
                    CANNOT_DELETE_LAST_SUPERADMIN,
                    entity_type="user",
                    entity_id=user_id,
                )
            await self._users.delete_user(user_id)
        except NotFoundError as e:
            raise RecordNotFoundError(USER_NOT_FOUND) from e
        except StorageError as e:
            raise await self._storage_failed("Failed to delete user.", e, actor.id) from e

        await self._audit_logger.log_user_deleted(user_id, actor.id)

    async def update_permissions(
        self,
        actor: User,
        user_id: UUID,
        permissions: list[str],
    ) -> User:
        """
        Replace a user's page permissions.

        Superadmin targets always get every manageable path. For everyone
        else the list is deduplicated and `/` is added.

        Raises:
            InvalidInputError: A path is not a manageable page
            RecordNotFoundError: Unknown user
        """
        await self._require_superadmin(actor, "update_permissions")
        data = await self._parse(
            UpdatePermissionsInput,
            "permissions",
            {"permissions": permissions},
            actor.id,
        )
        try:
            self._validator.check_permissions(data.permissions)
        except InvalidInputError as e:
            await self._audit_logger.log_validation_failed("permissions", e.issues, actor.id)
            raise

        try:
            target = await self._get_existing(user_id)
            final = (
                all_manageable_paths()
                if target.role == Role.SUPERADMIN
                else normalize_permissions(data.permissions)
            )
            updated = await self._users.update_user(
                target.model_copy(
                    update={"permissions": final, "updated_at": datetime.utcnow()}
                )
            )
        except NotFoundError as e:
            raise RecordNotFoundError(USER_NOT_FOUND) from e
        except StorageError as e:
            raise await self._storage_failed("Failed to update permissions.", e, actor.id) from e

        await self._audit_logger.log_permissions_updated(user_id, final, actor.id)
        return updated.to_public()
