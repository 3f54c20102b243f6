"""Helpers resolving the authenticated account inside a request."""

from __future__ import annotations

from flask_jwt_extended import get_current_user as _jwt_current_user
from werkzeug.exceptions import Forbidden, Unauthorized

from models.user import User


def get_current_user() -> User | None:
    """Return the user bound to the request token, if any."""

    try:
        return _jwt_current_user()
    except RuntimeError:
        return None


def require_user() -> User:
    user = get_current_user()
    if user is None:
        raise Unauthorized("Authentication required.")
    if not user.is_active_account:
        raise Forbidden(f"Account is {user.status}.")
    return user


def require_role(required_role: str) -> User:
    user = require_user()
    if not user.has_role(required_role):
        raise Forbidden("Insufficient privileges.")
    return user


def require_permission(permission: str) -> User:
    user = require_user()
    if not user.can(permission):
        raise Forbidden("Insufficient privileges.")
    return user
