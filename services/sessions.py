"""Server-side session bookkeeping for issued access tokens."""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from flask_jwt_extended import create_access_token, get_jti

from models import db
from models.session import UserSession
from models.user import User


def start_session(user: User, now: datetime | None = None) -> str:
    """Mint an access token for ``user`` and persist its session row."""

    now = now or datetime.utcnow()
    lifetime = current_app.config["SESSION_LIFETIME"]
    token = create_access_token(identity=str(user.id), expires_delta=lifetime)
    db.session.add(
        UserSession(user_id=user.id, token=get_jti(token), expires_at=now + lifetime)
    )
    db.session.commit()
    return token


def is_session_revoked(jti: str | None, now: datetime | None = None) -> bool:
    """A token is live only while its session row exists and has not expired."""

    if not jti:
        return True
    session = UserSession.query.filter_by(token=jti).first()
    return session is None or not session.is_valid(now)


def end_session(jti: str | None) -> None:
    if not jti:
        return
    UserSession.query.filter_by(token=jti).delete(synchronize_session=False)
    db.session.commit()


def revoke_all_sessions(user: User, *, commit: bool = True) -> int:
    """Delete every session of ``user`` and return how many were removed."""

    removed = UserSession.query.filter_by(user_id=user.id).delete(
        synchronize_session=False
    )
    if commit:
        db.session.commit()
    return removed


def purge_expired_sessions(now: datetime | None = None) -> int:
    now = now or datetime.utcnow()
    removed = UserSession.query.filter(UserSession.expires_at <= now).delete(
        synchronize_session=False
    )
    db.session.commit()
    return removed
