"""Role hierarchy and per-role permission lookups."""

from __future__ import annotations

ROLE_HIERARCHY: dict[str, int] = {
    "user": 1,
    "moderator": 2,
    "admin": 3,
    "owner": 4,
}

_USER_PERMISSIONS = ("view_recipes", "create_recipes", "rate_recipes", "favorite_recipes")
_MODERATOR_PERMISSIONS = _USER_PERMISSIONS + (
    "moderate_recipes",
    "moderate_comments",
    "view_reports",
)
_ADMIN_PERMISSIONS = _MODERATOR_PERMISSIONS + (
    "manage_users",
    "manage_categories",
    "view_analytics",
)
_OWNER_PERMISSIONS = _ADMIN_PERMISSIONS + ("manage_system", "manage_admins")

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    "user": frozenset(_USER_PERMISSIONS),
    "moderator": frozenset(_MODERATOR_PERMISSIONS),
    "admin": frozenset(_ADMIN_PERMISSIONS),
    "owner": frozenset(_OWNER_PERMISSIONS),
}

_DISPLAY_NAMES = {
    "user": "User",
    "moderator": "Moderator",
    "admin": "Administrator",
    "owner": "Owner",
}


def is_valid_role(role: str | None) -> bool:
    return role in ROLE_HIERARCHY


def get_role_level(role: str | None) -> int:
    """Return the numeric level of a role; unknown roles rank 0."""

    return ROLE_HIERARCHY.get(role or "", 0)


def get_default_role() -> str:
    return "user"


def has_permission(user_role: str | None, required_role: str | None) -> bool:
    """Return True when ``user_role`` sits at or above ``required_role``."""

    if not is_valid_role(user_role) or not is_valid_role(required_role):
        return False
    return get_role_level(user_role) >= get_role_level(required_role)


def can_moderate_user(moderator_role: str | None, target_role: str | None) -> bool:
    """Return True when the moderator outranks the target strictly."""

    if not is_valid_role(moderator_role) or not is_valid_role(target_role):
        return False
    return get_role_level(moderator_role) > get_role_level(target_role)


def has_specific_permission(role: str | None, permission: str) -> bool:
    if not is_valid_role(role):
        return False
    return permission in ROLE_PERMISSIONS[role]


def get_role_display_name(role: str | None) -> str:
    return _DISPLAY_NAMES.get(role or "", "User")
