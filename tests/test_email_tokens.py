"""Tests for the single-use email token service."""

from datetime import datetime, timedelta

import pytest
from werkzeug.exceptions import BadRequest

from models import db
from models.email_token import EmailToken
from models.user import User
from services import email_tokens


def test_generated_tokens_are_url_safe_and_unique():
    tokens = {email_tokens.generate_token() for _ in range(50)}

    assert len(tokens) == 50
    for token in tokens:
        assert len(token) == 32
        assert all(ch.isalnum() or ch in "-_" for ch in token)


def test_verification_token_expires(app, make_user):
    user_id = make_user("chef")
    issued = datetime(2026, 3, 1, 9, 0, 0)
    with app.app_context():
        token = email_tokens.create_email_verification_token(
            db.session.get(User, user_id), now=issued
        )

        record = email_tokens.verify_token(
            token, email_tokens.EMAIL_VERIFICATION, now=issued + timedelta(hours=23)
        )
        assert record.user_id == user_id

        with pytest.raises(BadRequest) as excinfo:
            email_tokens.verify_token(
                token, email_tokens.EMAIL_VERIFICATION, now=issued + timedelta(hours=25)
            )
        assert excinfo.value.description == "Token has expired"


def test_token_type_must_match(app, make_user):
    user_id = make_user("chef")
    with app.app_context():
        token = email_tokens.create_email_verification_token(db.session.get(User, user_id))

        with pytest.raises(BadRequest) as excinfo:
            email_tokens.verify_token(token, email_tokens.PASSWORD_RESET)
        assert excinfo.value.description == "Invalid token"


def test_token_is_single_use(app, make_user):
    user_id = make_user("chef")
    with app.app_context():
        token = email_tokens.create_password_reset_token(db.session.get(User, user_id))
        email_tokens.mark_token_used(token)
        db.session.commit()

        with pytest.raises(BadRequest) as excinfo:
            email_tokens.verify_token(token, email_tokens.PASSWORD_RESET)
        assert excinfo.value.description == "Token has already been used"


def test_new_reset_token_supersedes_older_ones(app, make_user):
    user_id = make_user("chef")
    with app.app_context():
        user = db.session.get(User, user_id)
        first = email_tokens.create_password_reset_token(user)
        second = email_tokens.create_password_reset_token(user)

        with pytest.raises(BadRequest):
            email_tokens.verify_token(first, email_tokens.PASSWORD_RESET)
        assert email_tokens.verify_token(second, email_tokens.PASSWORD_RESET).user_id == user_id


def test_mark_token_used_stamps_record(app, make_user):
    user_id = make_user("chef")
    used_at = datetime(2026, 3, 2, 8, 30, 0)
    with app.app_context():
        token = email_tokens.create_email_verification_token(db.session.get(User, user_id))
        email_tokens.mark_token_used(token, now=used_at)
        email_tokens.mark_token_used("unknown-token")
        db.session.commit()

        record = EmailToken.query.filter_by(token=token).one()
        assert record.used is True
        assert record.used_at == used_at


def test_cleanup_removes_expired_and_used_tokens(app, make_user):
    user_id = make_user("chef")
    issued = datetime(2026, 3, 1, 9, 0, 0)
    with app.app_context():
        user = db.session.get(User, user_id)
        expired = email_tokens.create_password_reset_token(user, now=issued)
        used = email_tokens.create_email_verification_token(user)
        live = email_tokens.create_email_verification_token(user)
        email_tokens.mark_token_used(used)
        db.session.commit()

        removed = email_tokens.cleanup_expired_tokens()

        assert removed == 2
        remaining = {record.token for record in EmailToken.query.all()}
        assert remaining == {live}
        assert expired not in remaining
