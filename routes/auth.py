"""Authentication blueprint: registration, sessions, email verification and resets."""

from __future__ import annotations

from datetime import datetime
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt, jwt_required, set_access_cookies, unset_jwt_cookies
from sqlalchemy import func
from werkzeug.exceptions import BadRequest, Conflict, Forbidden, InternalServerError, Unauthorized

from extensions import auth_rate_limit, limiter
from models import db
from models.user import User
from services import email_tokens, mailer, sessions
from utils.current_user import get_current_user
from utils.permissions import get_default_role
from utils.request_validation import parse_json_request
from utils.validators import (
    normalize_email,
    validate_email,
    validate_password,
    validate_username,
)

auth_bp = Blueprint("auth", __name__)

GENERIC_RESET_MESSAGE = "If an account with this email exists, a password reset link has been sent."
GENERIC_RESEND_MESSAGE = "If an account with this email exists, a verification email has been sent."


def find_user_by_email(email: str) -> User | None:
    return User.query.filter(func.lower(User.email) == email).first()


def find_user_by_username(username: str) -> User | None:
    return User.query.filter(func.lower(User.username) == username.lower()).first()


def _session_response(user: User, status: HTTPStatus, message: str):
    token = sessions.start_session(user)
    response = jsonify(
        {
            "success": True,
            "message": message,
            "access_token": token,
            "user": user.to_dict(include_private=True),
        }
    )
    response.status_code = status
    lifetime = current_app.config["SESSION_LIFETIME"]
    set_access_cookies(response, token, max_age=int(lifetime.total_seconds()))
    return response


@auth_bp.route("/register", methods=["POST"])
@limiter.limit(auth_rate_limit)
def register():
    """Create an account, send the verification email and sign the user in."""
    payload = parse_json_request(request, required_keys=("username", "email", "password"))
    username = validate_username(payload.get("username"))
    email = validate_email(payload.get("email"))
    password = validate_password(payload.get("password"), payload.get("confirm_password"))

    if find_user_by_email(email) is not None:
        raise Conflict("An account with this email already exists.")
    if find_user_by_username(username) is not None:
        raise Conflict("This username is already taken.")

    user = User(username=username, email=email, role=get_default_role(), status="active")
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Registered user %s (id=%s)", user.username, user.id)

    token = email_tokens.create_email_verification_token(user)
    if not mailer.send_verification_email(user, token):
        current_app.logger.warning("Verification email for user %s was not sent", user.id)

    return _session_response(
        user,
        HTTPStatus.CREATED,
        "Account created. Check your email to verify your address.",
    )


@auth_bp.route("/login", methods=["POST"])
@limiter.limit(auth_rate_limit)
def login():
    """Authenticate with email and password and open a session."""
    payload = parse_json_request(request, required_keys=("email", "password"))
    email = normalize_email(payload.get("email"))
    password = payload.get("password")
    if not isinstance(password, str):
        raise BadRequest("Password must be a string.")

    user = find_user_by_email(email)
    if user is None or not user.check_password(password):
        current_app.logger.warning("Failed login attempt for %s", email)
        raise Unauthorized("Invalid email or password")

    now = datetime.utcnow()
    if user.lift_expired_suspension(now):
        current_app.logger.info("Suspension for user %s expired; reinstated", user.id)
    if not user.is_active_account:
        db.session.commit()
        if user.status == "suspended":
            raise Forbidden(f"Account is suspended: {user.suspension_reason or 'no reason given'}.")
        raise Forbidden(f"Account is {user.status}.")

    user.last_login_at = now
    db.session.commit()
    current_app.logger.info("User %s logged in", user.id)
    return _session_response(user, HTTPStatus.OK, "Logged in successfully.")


@auth_bp.route("/logout", methods=["POST"])
@jwt_required(optional=True)
def logout():
    jti = get_jwt().get("jti")
    sessions.end_session(jti)
    response = jsonify({"success": True, "message": "Logged out successfully."})
    unset_jwt_cookies(response)
    return response


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    user = get_current_user()
    if user is None:
        raise Unauthorized("Not authenticated.")
    return jsonify({"success": True, "user": user.to_dict(include_private=True)})


@auth_bp.route("/verify-email", methods=["POST"])
def verify_email():
    payload = parse_json_request(request, required_keys=("token",))
    record = email_tokens.verify_token(payload.get("token"), email_tokens.EMAIL_VERIFICATION)

    user = record.user
    user.mark_verified()
    email_tokens.mark_token_used(record.token)
    db.session.commit()
    current_app.logger.info("User %s verified their email", user.id)

    mailer.send_welcome_email(user)
    return jsonify(
        {
            "success": True,
            "message": "Email verified successfully.",
            "user": user.to_dict(include_private=True),
        }
    )


@auth_bp.route("/resend-verification", methods=["POST"])
@limiter.limit(auth_rate_limit)
def resend_verification():
    payload = parse_json_request(request, required_keys=("email",))
    user = find_user_by_email(normalize_email(payload.get("email")))
    if user is None:
        return jsonify({"success": True, "message": GENERIC_RESEND_MESSAGE})
    if user.is_verified:
        raise BadRequest("This email address is already verified.")

    token = email_tokens.create_email_verification_token(user)
    if not mailer.send_verification_email(user, token):
        raise InternalServerError("Failed to send verification email.")
    return jsonify({"success": True, "message": "Verification email sent successfully."})


@auth_bp.route("/forgot-password", methods=["POST"])
@limiter.limit(auth_rate_limit)
def forgot_password():
    payload = parse_json_request(request, required_keys=("email",))
    user = find_user_by_email(normalize_email(payload.get("email")))
    if user is None or not user.is_active_account:
        return jsonify({"success": True, "message": GENERIC_RESET_MESSAGE})

    token = email_tokens.create_password_reset_token(user)
    if not mailer.send_password_reset_email(user, token):
        raise InternalServerError("Failed to send password reset email.")
    current_app.logger.info("Password reset requested for user %s", user.id)
    return jsonify({"success": True, "message": GENERIC_RESET_MESSAGE})


@auth_bp.route("/verify-reset-token", methods=["POST"])
def verify_reset_token():
    payload = parse_json_request(request, required_keys=("token",))
    email_tokens.verify_token(payload.get("token"), email_tokens.PASSWORD_RESET)
    return jsonify({"success": True, "valid": True})


@auth_bp.route("/reset-password", methods=["POST"])
@limiter.limit(auth_rate_limit)
def reset_password():
    """Set a new password from a reset token and sign out every session."""
    payload = parse_json_request(request, required_keys=("token", "password"))
    record = email_tokens.verify_token(payload.get("token"), email_tokens.PASSWORD_RESET)
    password = validate_password(payload.get("password"), payload.get("confirm_password"))

    user = record.user
    user.set_password(password)
    email_tokens.mark_token_used(record.token)
    email_tokens.invalidate_reset_tokens(user)
    sessions.revoke_all_sessions(user, commit=False)
    db.session.commit()
    current_app.logger.info("Password reset completed for user %s", user.id)

    response = jsonify({"success": True, "message": "Password has been reset. Please log in."})
    unset_jwt_cookies(response)
    return response
