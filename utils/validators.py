"""Field validators shared by the auth and profile endpoints."""

from __future__ import annotations

import re

from werkzeug.exceptions import BadRequest

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{3,30}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_MIN_LENGTH = 8


def _require_text(value, name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise BadRequest(f"{name} must be a string.")
    return value


def normalize_email(raw_email: str | None) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""
    return _require_text(raw_email, "Email").strip().lower()


def is_valid_username(username: str | None) -> bool:
    return bool(username) and USERNAME_PATTERN.match(username) is not None


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def password_error(password: str | None) -> str | None:
    """Return a description of what the password is missing, or None."""

    if password is not None and not isinstance(password, str):
        return "Password must be a string."
    password = password or ""
    if len(password) < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters long."
    if not (
        re.search(r"[a-z]", password)
        and re.search(r"[A-Z]", password)
        and re.search(r"\d", password)
    ):
        return "Password must contain uppercase, lowercase, and number."
    return None


def validate_username(raw_username: str | None) -> str:
    username = _require_text(raw_username, "Username").strip()
    if not is_valid_username(username):
        raise BadRequest(
            "Username must be 3-30 characters and contain only letters, numbers, "
            "underscores, and hyphens."
        )
    return username


def validate_email(raw_email: str | None) -> str:
    email = normalize_email(raw_email)
    if not is_valid_email(email):
        raise BadRequest("Please enter a valid email address.")
    return email


def validate_password(password: str | None, confirm_password: str | None = None) -> str:
    """Return the password when it satisfies the strength rules, else raise 400."""

    if confirm_password is not None and password != confirm_password:
        raise BadRequest("Passwords do not match.")
    problem = password_error(password)
    if problem:
        raise BadRequest(problem)
    return password
