"""Admin blueprint for recipe moderation, user moderation and dashboard stats."""

from __future__ import annotations

from datetime import datetime, timedelta

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import func, or_
from werkzeug.exceptions import BadRequest, Forbidden, NotFound

from models import db
from models.moderation_note import ModerationNote
from models.recipe import Recipe
from models.user import USER_ROLES, USER_STATUSES, User
from services import mailer, sessions
from utils.current_user import require_permission, require_role
from utils.permissions import get_role_display_name, get_role_level, is_valid_role
from utils.request_validation import clamp_limit, parse_bool, parse_int, parse_json_request

admin_bp = Blueprint("admin", __name__)

ACTIVE_USER_WINDOW = timedelta(days=30)
RECENT_ACTIVITY_WINDOW = timedelta(days=7)
RECENT_ACTIVITY_LIMIT = 10
MAX_SUSPENSION_DAYS = 365


# Recipe moderation -------------------------------------------------------


@admin_bp.route("/recipes/pending", methods=["GET"])
@jwt_required()
def pending_recipes():
    """Return the moderation queue, oldest submission first."""

    require_permission("moderate_recipes")
    recipes = (
        Recipe.query.filter_by(moderation_status="pending")
        .order_by(Recipe.created_at.asc(), Recipe.id.asc())
        .all()
    )
    return jsonify({"success": True, "recipes": [recipe.to_dict() for recipe in recipes]})


@admin_bp.route("/recipes/<int:recipe_id>/moderate", methods=["POST"])
@jwt_required()
def moderate_recipe(recipe_id: int):
    moderator = require_permission("moderate_recipes")
    payload = parse_json_request(request, required_keys=("status",))
    status = payload.get("status")
    if status not in {"approved", "rejected"}:
        raise BadRequest("Status must be 'approved' or 'rejected'.")
    notes = payload.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise BadRequest("notes must be a string.")

    recipe = db.session.get(Recipe, recipe_id)
    if recipe is None:
        raise NotFound("Recipe not found.")

    if status == "approved":
        recipe.approve(moderator.id, (notes or "").strip() or None)
    else:
        recipe.reject(moderator.id, (notes or "").strip() or None)
    db.session.commit()
    current_app.logger.info(
        "Moderator %s marked recipe %s as %s", moderator.id, recipe.id, status
    )

    mailer.send_recipe_status_email(recipe)
    return jsonify(
        {
            "success": True,
            "message": f"Recipe {status} successfully.",
            "recipe": recipe.to_dict(),
        }
    )


@admin_bp.route("/stats", methods=["GET"])
@jwt_required()
def dashboard_stats():
    require_permission("view_analytics")
    now = datetime.utcnow()

    total_users = User.query.count()
    active_users = User.query.filter(User.last_login_at > now - ACTIVE_USER_WINDOW).count()

    status_counts = dict(
        db.session.query(Recipe.moderation_status, func.count(Recipe.id))
        .group_by(Recipe.moderation_status)
        .all()
    )
    published = Recipe.visible_filter(Recipe.query).count()

    recent = (
        Recipe.query.filter(Recipe.created_at > now - RECENT_ACTIVITY_WINDOW)
        .order_by(Recipe.created_at.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )

    return jsonify(
        {
            "success": True,
            "stats": {
                "total_users": total_users,
                "active_users": active_users,
                "total_recipes": sum(status_counts.values()),
                "pending_recipes": status_counts.get("pending", 0),
                "published_recipes": published,
                "rejected_recipes": status_counts.get("rejected", 0),
                "recent_activity": [
                    {
                        "type": "recipe_submitted",
                        "description": recipe.title,
                        "timestamp": recipe.created_at.isoformat(),
                        "user_name": recipe.author.username if recipe.author else None,
                    }
                    for recipe in recent
                ],
            },
        }
    )


# User moderation ---------------------------------------------------------


def _get_target(user_id: int, actor: User) -> User:
    target = db.session.get(User, user_id)
    if target is None:
        raise NotFound("User not found.")
    if not actor.can_moderate(target):
        current_app.logger.warning(
            "User %s (%s) refused moderation of user %s (%s)",
            actor.id,
            actor.role,
            target.id,
            target.role,
        )
        raise Forbidden("You cannot moderate a user with an equal or higher role.")
    return target


def _record(target: User, actor: User, action: str, note: str | None) -> ModerationNote:
    entry = ModerationNote(user_id=target.id, moderator_id=actor.id, action=action, note=note)
    db.session.add(entry)
    return entry


def _required_text(payload: dict, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise BadRequest(f"{key} is required.")
    return value.strip()


def _moderation_response(target: User, entry: ModerationNote, message: str):
    return jsonify(
        {
            "success": True,
            "message": message,
            "user": target.to_dict(include_private=True),
            "note": entry.to_dict(),
        }
    )


@admin_bp.route("/users", methods=["GET"])
@jwt_required()
def list_users():
    require_role("moderator")
    query = User.query

    status = request.args.get("status")
    if status:
        if status not in USER_STATUSES:
            raise BadRequest("Unknown status filter.")
        query = query.filter(User.status == status)

    role = request.args.get("role")
    if role:
        if role not in USER_ROLES:
            raise BadRequest("Unknown role filter.")
        query = query.filter(User.role == role)

    verified = parse_bool(request.args.get("verified"))
    if verified is not None:
        query = query.filter(User.is_verified.is_(verified))

    search = (request.args.get("q") or "").strip().lower()
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(func.lower(User.username).like(pattern), func.lower(User.email).like(pattern))
        )

    page = parse_int(request.args.get("page"), "page", default=1, minimum=1)
    limit = clamp_limit(request.args.get("limit"), default=20, maximum=100)
    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return jsonify(
        {
            "success": True,
            "users": [user.to_dict(include_private=True) for user in users],
            "total_count": total,
            "page": page,
            "limit": limit,
        }
    )


@admin_bp.route("/users/<int:user_id>", methods=["GET"])
@jwt_required()
def get_user(user_id: int):
    require_role("moderator")
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")
    data = user.to_dict(include_private=True)
    data["role_display_name"] = get_role_display_name(user.role)
    data["moderation_notes"] = [note.to_dict() for note in user.moderation_notes]
    return jsonify({"success": True, "user": data})


@admin_bp.route("/users/<int:user_id>/warn", methods=["POST"])
@jwt_required()
def warn_user(user_id: int):
    actor = require_role("moderator")
    target = _get_target(user_id, actor)
    reason = _required_text(parse_json_request(request), "reason")

    target.warning_count = (target.warning_count or 0) + 1
    entry = _record(target, actor, "warning", reason)
    db.session.commit()
    current_app.logger.info("User %s warned user %s", actor.id, target.id)
    return _moderation_response(target, entry, "Warning issued.")


@admin_bp.route("/users/<int:user_id>/suspend", methods=["POST"])
@jwt_required()
def suspend_user(user_id: int):
    actor = require_role("moderator")
    target = _get_target(user_id, actor)
    payload = parse_json_request(request)
    reason = _required_text(payload, "reason")
    days = parse_int(
        payload.get("duration_days"),
        "duration_days",
        minimum=1,
        maximum=MAX_SUSPENSION_DAYS,
    )
    if days is None:
        raise BadRequest("duration_days is required.")

    target.suspend(reason, days)
    entry = _record(target, actor, "suspension", f"{reason} ({days} days)")
    sessions.revoke_all_sessions(target, commit=False)
    db.session.commit()
    current_app.logger.info("User %s suspended user %s for %s days", actor.id, target.id, days)
    return _moderation_response(target, entry, "User suspended.")


@admin_bp.route("/users/<int:user_id>/unsuspend", methods=["POST"])
@jwt_required()
def unsuspend_user(user_id: int):
    actor = require_role("moderator")
    target = _get_target(user_id, actor)
    payload = parse_json_request(request, allow_empty=True) if request.is_json else {}
    note = (payload.get("note") or "").strip() or "Account reinstated"

    target.reinstate()
    entry = _record(target, actor, "reinstatement", note)
    db.session.commit()
    current_app.logger.info("User %s reinstated user %s", actor.id, target.id)
    return _moderation_response(target, entry, "User reinstated.")


@admin_bp.route("/users/<int:user_id>/ban", methods=["POST"])
@jwt_required()
def ban_user(user_id: int):
    actor = require_role("moderator")
    target = _get_target(user_id, actor)
    reason = _required_text(parse_json_request(request), "reason")

    target.ban(reason)
    entry = _record(target, actor, "ban", reason)
    sessions.revoke_all_sessions(target, commit=False)
    db.session.commit()
    current_app.logger.info("User %s banned user %s", actor.id, target.id)
    return _moderation_response(target, entry, "User banned.")


@admin_bp.route("/users/<int:user_id>/verify", methods=["POST"])
@jwt_required()
def verify_user(user_id: int):
    actor = require_role("moderator")
    target = _get_target(user_id, actor)

    target.mark_verified()
    entry = _record(target, actor, "verification", "Account manually verified")
    db.session.commit()
    return _moderation_response(target, entry, "User verified.")


@admin_bp.route("/users/<int:user_id>/role", methods=["POST"])
@jwt_required()
def change_role(user_id: int):
    """Change a user's role; nobody may grant a role at or above their own."""

    actor = require_permission("manage_users")
    target = _get_target(user_id, actor)
    new_role = parse_json_request(request, required_keys=("role",)).get("role")
    if not is_valid_role(new_role):
        raise BadRequest("Role must be one of: {}.".format(", ".join(USER_ROLES)))
    if get_role_level(new_role) >= actor.role_level:
        raise Forbidden("You cannot assign a role equal to or above your own.")

    previous = target.role
    target.role = new_role
    entry = _record(
        target,
        actor,
        "role_change",
        f"Role changed from {get_role_display_name(previous)} to {get_role_display_name(new_role)}",
    )
    db.session.commit()
    current_app.logger.info(
        "User %s changed role of user %s from %s to %s", actor.id, target.id, previous, new_role
    )
    return _moderation_response(target, entry, "Role updated.")


@admin_bp.route("/users/<int:user_id>/notes", methods=["POST"])
@jwt_required()
def add_note(user_id: int):
    actor = require_role("moderator")
    target = _get_target(user_id, actor)
    note = _required_text(parse_json_request(request), "note")

    entry = _record(target, actor, "note", note)
    db.session.commit()
    return _moderation_response(target, entry, "Note added.")
