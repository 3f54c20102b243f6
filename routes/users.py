"""Account self-service blueprint: profile, avatar and account deletion."""

from __future__ import annotations

import os
import uuid
from pathlib import Path

from flask import Blueprint, current_app, jsonify, request, send_file
from flask_jwt_extended import jwt_required, unset_jwt_cookies
from sqlalchemy import func
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import BadRequest, Conflict, NotFound

from models import db
from models.rating import Rating
from models.recipe import Recipe
from models.user import User
from services import email_tokens, mailer
from storage import avatar_storage
from utils.current_user import require_user
from utils.request_validation import parse_json_request
from utils.validators import validate_email, validate_username

users_bp = Blueprint("users", __name__)

AVATAR_URL_PREFIX = "/api/user/avatars/"
AVATAR_MIMETYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def _optional_text(payload: dict, key: str, max_length: int) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise BadRequest(f"{key} must be a string.")
    value = value.strip()
    if len(value) > max_length:
        raise BadRequest(f"{key} must be at most {max_length} characters.")
    return value or None


def _stored_avatar_name(user: User) -> str | None:
    if user.avatar and user.avatar.startswith(AVATAR_URL_PREFIX):
        return user.avatar[len(AVATAR_URL_PREFIX):]
    return None


def _discard_avatar_file(name: str | None, user_id: int) -> None:
    if name and not avatar_storage().delete(name):
        current_app.logger.warning("Avatar file %s for user %s was already gone", name, user_id)


@users_bp.route("/profile", methods=["PUT"])
@jwt_required()
def update_profile():
    user = require_user()
    payload = parse_json_request(request, required_keys=("username", "email"))
    username = validate_username(payload.get("username"))
    email = validate_email(payload.get("email"))

    taken = User.query.filter(
        User.id != user.id,
        (func.lower(User.username) == username.lower()) | (func.lower(User.email) == email),
    ).first()
    if taken is not None:
        if taken.email.lower() == email:
            raise Conflict("An account with this email already exists.")
        raise Conflict("This username is already taken.")

    email_changed = email != user.email
    user.username = username
    user.email = email
    user.bio = _optional_text(payload, "bio", 1000)
    user.location = _optional_text(payload, "location", 120)
    user.website = _optional_text(payload, "website", 255)
    if email_changed:
        user.is_verified = False
    db.session.commit()

    if email_changed:
        token = email_tokens.create_email_verification_token(user)
        mailer.send_verification_email(user, token)

    return jsonify(
        {
            "success": True,
            "message": "Profile updated successfully.",
            "user": user.to_dict(include_private=True),
        }
    )


@users_bp.route("/account", methods=["DELETE"])
@jwt_required()
def delete_account():
    """Delete the account with everything it owns, then sign the client out."""

    user = require_user()
    user_id = user.id

    affected = (
        Recipe.query.join(Rating, Rating.recipe_id == Recipe.id)
        .filter(Rating.user_id == user_id, Recipe.author_id != user_id)
        .all()
    )
    avatar_name = _stored_avatar_name(user)
    db.session.delete(user)
    db.session.flush()
    for recipe in affected:
        db.session.expire(recipe, ["ratings"])
        recipe.recompute_rating()
    db.session.commit()
    _discard_avatar_file(avatar_name, user_id)
    current_app.logger.info("Deleted account %s", user_id)

    response = jsonify({"success": True, "message": "Account deleted successfully."})
    unset_jwt_cookies(response)
    return response


@users_bp.route("/avatar", methods=["POST"])
@jwt_required()
def upload_avatar():
    user = require_user()
    file = request.files.get("avatar")
    if not isinstance(file, FileStorage) or not file.filename:
        raise BadRequest("No file provided.")
    extension = Path(file.filename).suffix.lower()
    if extension not in AVATAR_MIMETYPES or not (file.mimetype or "").startswith("image/"):
        raise BadRequest("Invalid file type. Only images are allowed.")

    max_size = int(current_app.config["AVATAR_MAX_SIZE"])
    file.stream.seek(0, os.SEEK_END)
    size = file.stream.tell()
    file.stream.seek(0)
    if size > max_size:
        raise BadRequest("File too large. Maximum size is 5MB.")

    stored_name = avatar_storage().save(file, f"{uuid.uuid4().hex}{extension}")
    previous = _stored_avatar_name(user)
    user.avatar = f"{AVATAR_URL_PREFIX}{stored_name}"
    db.session.commit()
    _discard_avatar_file(previous, user.id)

    return jsonify(
        {
            "success": True,
            "message": "Profile picture updated successfully.",
            "avatar": user.avatar,
        }
    )


@users_bp.route("/avatar", methods=["DELETE"])
@jwt_required()
def delete_avatar():
    user = require_user()
    previous = _stored_avatar_name(user)
    user.avatar = None
    db.session.commit()
    _discard_avatar_file(previous, user.id)
    return jsonify({"success": True, "message": "Profile picture removed."})


@users_bp.route("/avatars/<path:filename>", methods=["GET"])
def serve_avatar(filename: str):
    storage = avatar_storage()
    mimetype = AVATAR_MIMETYPES.get(Path(filename).suffix.lower())
    try:
        found = mimetype is not None and storage.exists(filename)
    except ValueError:
        found = False
    if not found:
        raise NotFound("Avatar not found.")
    return send_file(storage.path_for(filename), mimetype=mimetype)
