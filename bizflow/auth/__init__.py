"""Authentication and page access package."""

from bizflow.auth.passwords import PasswordHasher
from bizflow.auth.permissions import (
    DASHBOARD_PATH,
    DEFAULT_ALLOWED_PATHS,
    MANAGEABLE_PATHS,
    USERS_PATH,
    all_manageable_paths,
    can_access,
    default_permissions,
    effective_permissions,
    normalize_permissions,
    unknown_paths,
)
from bizflow.auth.session import INVALID_CREDENTIALS, AuthService, Session

__all__ = [
    # Passwords
    "PasswordHasher",
    # Page access
    "DASHBOARD_PATH",
    "DEFAULT_ALLOWED_PATHS",
    "MANAGEABLE_PATHS",
    "USERS_PATH",
    "all_manageable_paths",
    "can_access",
    "default_permissions",
    "effective_permissions",
    "normalize_permissions",
    "unknown_paths",
    # Sessions
    "INVALID_CREDENTIALS",
    "AuthService",
    "Session",
]
