"""
User Models for BizFlow

Users carry a role and an allow-list of route paths. The password hash
only ever lives on UserRecord, which is used for authentication and
storage; everything handed to the UI is a plain User.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def username_key(username: str) -> str:
    """Form a username is compared and indexed in, ignoring case."""
    return username.strip().lower()


class Role(str, Enum):
    """
    User roles.

    SUPERADMIN has unconditional access to every page and to user
    management. USER is limited to its stored permissions.
    """
    SUPERADMIN = "superadmin"
    USER = "user"


class User(BaseModel):
    """A user as exposed to callers (no password hash)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique user ID"
    )
    username: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Login name, unique ignoring case"
    )
    role: Role = Field(
        ...,
        description="User role"
    )
    permissions: list[str] = Field(
        default_factory=list,
        description="Route paths this user may open"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_superadmin(self) -> bool:
        return self.role == Role.SUPERADMIN

    @property
    def username_key(self) -> str:
        return username_key(self.username)


class UserRecord(User):
    """
    A stored user including the password hash.

    Never return this from a listing operation.
    """

    password_hash: str = Field(
        ...,
        min_length=1,
        repr=False,
        description="bcrypt hash of the password"
    )

    def to_public(self) -> User:
        """Drop the password hash."""
        return User(**self.model_dump(exclude={"password_hash"}))


# =============================================================================
# INPUT MODELS
# =============================================================================

class AddUserInput(BaseModel):
    """Payload for creating a user."""

    username: str
    password: str
    role: Role

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if len(v) < MIN_USERNAME_LENGTH:
            raise ValueError(
                f"Username must be at least {MIN_USERNAME_LENGTH} characters"
            )
        return v

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
            )
        return v


class UpdateUserInput(BaseModel):
    """
    Payload for editing a user.

    Every field is optional. An empty password means "keep the current one".
    """

    username: Optional[str] = None
    password: Optional[str] = None
    role: Optional[Role] = None

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip() or None
        if v is not None and len(v) < MIN_USERNAME_LENGTH:
            raise ValueError(
                f"Username must be at least {MIN_USERNAME_LENGTH} characters"
            )
        return v

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
            )
        return v

    @property
    def is_empty(self) -> bool:
        return not self.username and not self.password and not self.role


class UpdatePermissionsInput(BaseModel):
    """Payload for replacing a user's permission list."""

    permissions: list[str]


class LoginInput(BaseModel):
    """Login form payload."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
