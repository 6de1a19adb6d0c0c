"""
Page Access Rules

A page is identified by its route path. Superadmins open every page;
everyone else opens exactly the paths stored on their user record.
`/users` is never grantable and stays superadmin-only.
"""

from typing import Iterable

from bizflow.models.user import Role, User


DASHBOARD_PATH = "/"
USERS_PATH = "/users"

# Paths a superadmin can grant to a regular user, with their labels
MANAGEABLE_PATHS: dict[str, str] = {
    "/": "Dashboard",
    "/transactions": "Transactions",
    "/budgets": "Budgets",
    "/reports": "Reports",
    "/calendar": "Calendar",
}

DEFAULT_ALLOWED_PATHS: list[str] = [DASHBOARD_PATH]


def all_manageable_paths() -> list[str]:
    return list(MANAGEABLE_PATHS)


def default_permissions(role: Role) -> list[str]:
    """Permissions a user gets on creation or after a role change."""
    if role == Role.SUPERADMIN:
        return all_manageable_paths()
    return list(DEFAULT_ALLOWED_PATHS)


def unknown_paths(paths: Iterable[str]) -> list[str]:
    return [path for path in paths if path not in MANAGEABLE_PATHS]


def normalize_permissions(paths: Iterable[str]) -> list[str]:
    """
    Deduplicate a regular user's paths and make sure `/` is present.

    Order follows MANAGEABLE_PATHS so stored lists are stable. Unknown
    paths are dropped; callers that must reject them check
    unknown_paths() first.
    """
    wanted = set(paths)
    wanted.add(DASHBOARD_PATH)
    return [path for path in MANAGEABLE_PATHS if path in wanted]


def effective_permissions(user: User) -> list[str]:
    """Paths the user can actually open; superadmins hold all of them."""
    if user.role == Role.SUPERADMIN:
        return all_manageable_paths()
    return list(user.permissions)


def can_access(user: User, path: str) -> bool:
    if user.role == Role.SUPERADMIN:
        return True
    if path == USERS_PATH:
        return False
    return path in user.permissions
