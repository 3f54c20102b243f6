"""Issue, verify and retire single-use email tokens."""

from __future__ import annotations

import secrets
from datetime import datetime

from flask import current_app
from sqlalchemy import or_
from werkzeug.exceptions import BadRequest

from models import db
from models.email_token import EmailToken
from models.user import User

EMAIL_VERIFICATION = "email_verification"
PASSWORD_RESET = "password_reset"


def generate_token() -> str:
    # 24 random bytes encode to exactly 32 url-safe characters.
    return secrets.token_urlsafe(24)


def _issue(user: User, token_type: str, ttl, now: datetime) -> str:
    token = generate_token()
    db.session.add(
        EmailToken(
            user_id=user.id,
            token=token,
            type=token_type,
            expires_at=now + ttl,
            created_at=now,
        )
    )
    db.session.commit()
    return token


def create_email_verification_token(user: User, now: datetime | None = None) -> str:
    now = now or datetime.utcnow()
    ttl = current_app.config["EMAIL_VERIFICATION_TOKEN_TTL"]
    return _issue(user, EMAIL_VERIFICATION, ttl, now)


def create_password_reset_token(user: User, now: datetime | None = None) -> str:
    """Issue a reset token, retiring every earlier unused one for the user."""

    now = now or datetime.utcnow()
    invalidate_reset_tokens(user, now=now)
    ttl = current_app.config["PASSWORD_RESET_TOKEN_TTL"]
    return _issue(user, PASSWORD_RESET, ttl, now)


def invalidate_reset_tokens(user: User, now: datetime | None = None) -> int:
    now = now or datetime.utcnow()
    return EmailToken.query.filter_by(
        user_id=user.id, type=PASSWORD_RESET, used=False
    ).update({"used": True, "used_at": now}, synchronize_session=False)


def verify_token(token: str | None, token_type: str, now: datetime | None = None) -> EmailToken:
    """Return the stored token when it may still be redeemed, else raise 400."""

    now = now or datetime.utcnow()
    record = None
    if token:
        record = EmailToken.query.filter_by(token=token, type=token_type).first()
    if record is None:
        raise BadRequest("Invalid token")
    if record.used:
        raise BadRequest("Token has already been used")
    if record.expires_at < now:
        raise BadRequest("Token has expired")
    return record


def mark_token_used(token: str, now: datetime | None = None) -> None:
    record = EmailToken.query.filter_by(token=token).first()
    if record is not None:
        record.mark_used(now)


def cleanup_expired_tokens(now: datetime | None = None) -> int:
    """Delete expired or already redeemed tokens and return how many went."""

    now = now or datetime.utcnow()
    removed = EmailToken.query.filter(
        or_(EmailToken.expires_at < now, EmailToken.used.is_(True))
    ).delete(synchronize_session=False)
    db.session.commit()
    return removed
