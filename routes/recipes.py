"""Recipe blueprint: submission, discovery, ratings, favorites and comments."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadRequest, Forbidden, NotFound

from models import db
from models.comment import COMMENT_MAX_LENGTH, Comment
from models.favorite import Favorite
from models.rating import Rating
from models.recipe import DIFFICULTIES, Recipe
from models.user import User
from services import analytics
from services.search import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    SORT_OPTIONS,
    RecipeSearchEngine,
    SearchFilters,
)
from utils.current_user import get_current_user, require_permission, require_user
from utils.request_validation import clamp_limit, parse_float, parse_int, parse_json_request

recipes_bp = Blueprint("recipes", __name__)

DISCOVERY_DEFAULT_LIMIT = 10


def _get_recipe_or_404(recipe_id: int) -> Recipe:
    recipe = db.session.get(Recipe, recipe_id)
    if recipe is None:
        raise NotFound("Recipe not found.")
    return recipe


def _can_see_hidden(recipe: Recipe, user: User | None) -> bool:
    if user is None:
        return False
    return user.id == recipe.author_id or user.has_role("moderator")


def _get_readable_recipe(recipe_id: int, user: User | None) -> Recipe:
    """Hidden recipes only exist for their author and for staff."""
    recipe = _get_recipe_or_404(recipe_id)
    if not recipe.is_visible and not _can_see_hidden(recipe, user):
        raise NotFound("Recipe not found.")
    return recipe


def _get_visible_recipe(recipe_id: int) -> Recipe:
    recipe = _get_recipe_or_404(recipe_id)
    if not recipe.is_visible:
        raise NotFound("Recipe not found.")
    return recipe


def _page_args() -> tuple[int, int]:
    page = parse_int(request.args.get("page"), "page", default=1, minimum=1)
    limit = clamp_limit(request.args.get("limit"), default=DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE)
    return page, limit


def _discovery_limit() -> int:
    return clamp_limit(
        request.args.get("limit"), default=DISCOVERY_DEFAULT_LIMIT, maximum=MAX_PAGE_SIZE
    )


def _serialize_list(recipes) -> list[dict]:
    return [recipe.to_dict(include_details=False) for recipe in recipes]


# Payload parsing ---------------------------------------------------------


def _clean_text(value, name: str, *, required: bool = False, max_length: int | None = None):
    if value is None:
        if required:
            raise BadRequest(f"{name} is required.")
        return None
    if not isinstance(value, str):
        raise BadRequest(f"{name} must be a string.")
    text = value.strip()
    if required and not text:
        raise BadRequest(f"{name} is required.")
    if max_length is not None and len(text) > max_length:
        raise BadRequest(f"{name} must be at most {max_length} characters.")
    return text or None


def _parse_difficulty(value) -> str:
    if not isinstance(value, str):
        raise BadRequest("difficulty is required.")
    for option in DIFFICULTIES:
        if option.lower() == value.strip().lower():
            return option
    raise BadRequest("difficulty must be one of: {}.".format(", ".join(DIFFICULTIES)))


def parse_ingredients(raw) -> list[dict]:
    if not isinstance(raw, list):
        raise BadRequest("ingredients must be a list.")
    items = []
    for entry in raw:
        if isinstance(entry, str):
            entry = {"ingredient": entry}
        if not isinstance(entry, dict):
            raise BadRequest("Each ingredient must be a string or an object.")
        name = _clean_text(entry.get("ingredient") or entry.get("name"), "ingredient")
        if not name:
            continue
        items.append(
            {
                "ingredient": name,
                "amount": _clean_text(_as_text(entry.get("amount")), "amount"),
                "unit": _clean_text(entry.get("unit"), "unit"),
            }
        )
    return items


def _as_text(value):
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def parse_instructions(raw) -> list[str]:
    """Return instruction texts ordered by supplied step number, else by position."""
    if not isinstance(raw, list):
        raise BadRequest("instructions must be a list.")
    steps = []
    for position, entry in enumerate(raw):
        if isinstance(entry, str):
            entry = {"instruction": entry}
        if not isinstance(entry, dict):
            raise BadRequest("Each instruction must be a string or an object.")
        text = _clean_text(entry.get("instruction"), "instruction")
        if not text:
            continue
        step_number = parse_int(entry.get("step_number"), "step_number", default=position + 1)
        steps.append((step_number, position, text))
    steps.sort(key=lambda item: (item[0], item[1]))
    return [text for _, _, text in steps]


def parse_tags(raw) -> list[str]:
    if isinstance(raw, str):
        raw = raw.split(",")
    if not isinstance(raw, list):
        raise BadRequest("tags must be a list.")
    tags: list[str] = []
    for value in raw:
        if not isinstance(value, str):
            raise BadRequest("Each tag must be a string.")
        tag = value.strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _apply_scalar_fields(recipe: Recipe, payload: dict, *, creating: bool) -> None:
    if creating or "title" in payload:
        recipe.title = _clean_text(payload.get("title"), "title", required=True, max_length=200)
    if creating or "category" in payload:
        recipe.category = _clean_text(payload.get("category"), "category", required=True, max_length=100)
    if creating or "difficulty" in payload:
        recipe.difficulty = _parse_difficulty(payload.get("difficulty"))
    if "description" in payload:
        recipe.description = _clean_text(payload.get("description"), "description")
    if "image_url" in payload:
        recipe.image_url = _clean_text(payload.get("image_url"), "image_url", max_length=512)
    for field in ("prep_time_minutes", "cook_time_minutes"):
        if field in payload:
            setattr(recipe, field, parse_int(payload.get(field), field, default=0, minimum=0))
    if "servings" in payload:
        recipe.servings = parse_int(payload.get("servings"), "servings", default=1, minimum=1)


def _apply_collections(recipe: Recipe, payload: dict) -> None:
    if "ingredients" in payload:
        recipe.replace_ingredients(parse_ingredients(payload.get("ingredients")))
    if "instructions" in payload:
        recipe.replace_instructions(parse_instructions(payload.get("instructions")))
    if "tags" in payload:
        recipe.replace_tags(parse_tags(payload.get("tags")))


# Listing and discovery ---------------------------------------------------


@recipes_bp.route("", methods=["GET"])
def list_recipes():
    """Visible recipes, newest first."""
    page, limit = _page_args()
    query = Recipe.visible_filter(Recipe.query)
    category = request.args.get("category")
    if category and category.lower() != "all":
        query = query.filter(db.func.lower(Recipe.category) == category.strip().lower())

    total = query.count()
    recipes = (
        query.order_by(Recipe.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return jsonify(
        {
            "success": True,
            "recipes": _serialize_list(recipes),
            "total_count": total,
            "page": page,
            "limit": limit,
        }
    )


@recipes_bp.route("/search", methods=["GET"])
def search_recipes():
    sort_by = (request.args.get("sort") or "relevance").strip().lower()
    if sort_by not in SORT_OPTIONS:
        raise BadRequest("sort must be one of: {}.".format(", ".join(SORT_OPTIONS)))

    raw_tags = request.args.get("tags") or ""
    filters = SearchFilters(
        query=(request.args.get("q") or "").strip() or None,
        category=request.args.get("category"),
        difficulty=request.args.get("difficulty"),
        tags=[tag.strip() for tag in raw_tags.split(",") if tag.strip()],
        max_prep_time=parse_int(request.args.get("max_prep_time"), "max_prep_time", minimum=0),
        max_cook_time=parse_int(request.args.get("max_cook_time"), "max_cook_time", minimum=0),
        min_rating=parse_float(request.args.get("min_rating"), "min_rating"),
        sort_by=sort_by,
    )
    page, limit = _page_args()
    result = RecipeSearchEngine().search(filters, page=page, limit=limit)
    return jsonify({"success": True, **result.to_dict()})


@recipes_bp.route("/tags/popular", methods=["GET"])
def popular_tags():
    limit = _discovery_limit()
    return jsonify({"success": True, "tags": RecipeSearchEngine().popular_tags(limit)})


@recipes_bp.route("/suggestions", methods=["GET"])
def suggestions():
    return jsonify({"success": True, "suggestions": RecipeSearchEngine.suggested_searches()})


@recipes_bp.route("/trending", methods=["GET"])
def trending():
    ranked = analytics.trending(_discovery_limit())
    return jsonify(
        {
            "success": True,
            "recipes": [
                {**recipe.to_dict(include_details=False), "trending_score": score}
                for recipe, score in ranked
            ],
        }
    )


@recipes_bp.route("/most-viewed", methods=["GET"])
def most_viewed():
    ranked = analytics.most_viewed(_discovery_limit())
    return jsonify(
        {
            "success": True,
            "recipes": [
                {**recipe.to_dict(include_details=False), "recent_views": views}
                for recipe, views in ranked
            ],
        }
    )


@recipes_bp.route("/top-rated", methods=["GET"])
def top_rated():
    ranked = analytics.top_rated(_discovery_limit())
    return jsonify(
        {
            "success": True,
            "recipes": [
                {
                    **recipe.to_dict(include_details=False),
                    "recent_rating": round(average, 2),
                    "recent_rating_count": count,
                }
                for recipe, average, count in ranked
            ],
        }
    )


@recipes_bp.route("/recent", methods=["GET"])
def recent():
    recipes = analytics.recently_added(_discovery_limit())
    return jsonify({"success": True, "recipes": _serialize_list(recipes)})


@recipes_bp.route("/mine", methods=["GET"])
@jwt_required()
def my_recipes():
    user = require_user()
    recipes = (
        Recipe.query.filter_by(author_id=user.id)
        .order_by(Recipe.created_at.desc())
        .all()
    )
    return jsonify({"success": True, "recipes": _serialize_list(recipes)})


@recipes_bp.route("/favorites", methods=["GET"])
@jwt_required()
def my_favorites():
    user = require_user()
    query = Recipe.visible_filter(Recipe.query.join(Favorite, Favorite.recipe_id == Recipe.id))
    recipes = (
        query.filter(Favorite.user_id == user.id)
        .order_by(Favorite.created_at.desc())
        .all()
    )
    return jsonify({"success": True, "recipes": _serialize_list(recipes)})


# Single recipe -----------------------------------------------------------


@recipes_bp.route("/<int:recipe_id>", methods=["GET"])
@jwt_required(optional=True)
def get_recipe(recipe_id: int):
    user = get_current_user()
    recipe = _get_readable_recipe(recipe_id, user)
    if recipe.is_visible:
        analytics.track_interaction(recipe, "view", user)

    data = recipe.to_dict()
    data["user_rating"] = None
    data["is_favorited"] = False
    if user is not None:
        rating = Rating.query.filter_by(user_id=user.id, recipe_id=recipe.id).first()
        data["user_rating"] = rating.rating if rating else None
        data["is_favorited"] = (
            Favorite.query.filter_by(user_id=user.id, recipe_id=recipe.id).first() is not None
        )
    return jsonify({"success": True, "recipe": data})


@recipes_bp.route("/<int:recipe_id>/stats", methods=["GET"])
@jwt_required(optional=True)
def recipe_stats(recipe_id: int):
    recipe = _get_readable_recipe(recipe_id, get_current_user())
    return jsonify({"success": True, "stats": analytics.recipe_stats(recipe).to_dict()})


@recipes_bp.route("", methods=["POST"])
@jwt_required()
def create_recipe():
    """Submit a recipe; it waits in the moderation queue until approved."""
    user = require_permission("create_recipes")
    payload = parse_json_request(request, required_keys=("title", "category", "difficulty"))

    recipe = Recipe(author=user, moderation_status="pending", is_published=False)
    _apply_scalar_fields(recipe, payload, creating=True)
    _apply_collections(recipe, payload)
    db.session.add(recipe)
    db.session.commit()
    current_app.logger.info("User %s submitted recipe %s", user.id, recipe.id)

    return (
        jsonify(
            {
                "success": True,
                "message": "Recipe submitted for review.",
                "recipe": recipe.to_dict(),
            }
        ),
        HTTPStatus.CREATED,
    )


@recipes_bp.route("/<int:recipe_id>", methods=["PATCH"])
@jwt_required()
def update_recipe(recipe_id: int):
    user = require_user()
    recipe = _get_recipe_or_404(recipe_id)
    is_author = user.id == recipe.author_id
    is_moderator = user.can("moderate_recipes")
    if not is_author and not is_moderator:
        raise Forbidden("You can only edit your own recipes.")

    payload = parse_json_request(request)
    _apply_scalar_fields(recipe, payload, creating=False)
    _apply_collections(recipe, payload)
    if is_author and not is_moderator and recipe.moderation_status != "pending":
        recipe.requeue()
        current_app.logger.info("Recipe %s re-queued for moderation after edit", recipe.id)
    db.session.commit()
    return jsonify({"success": True, "recipe": recipe.to_dict()})


@recipes_bp.route("/<int:recipe_id>", methods=["DELETE"])
@jwt_required()
def delete_recipe(recipe_id: int):
    user = require_user()
    recipe = _get_recipe_or_404(recipe_id)
    if user.id != recipe.author_id and not user.has_role("admin"):
        raise Forbidden("You can only delete your own recipes.")

    db.session.delete(recipe)
    db.session.commit()
    current_app.logger.info("User %s deleted recipe %s", user.id, recipe_id)
    return jsonify({"success": True, "message": "Recipe deleted."})


# Ratings and favorites ---------------------------------------------------


def _parse_rating(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        raise BadRequest("rating must be an integer between 1 and 5.")
    return value


@recipes_bp.route("/<int:recipe_id>/rating", methods=["POST"])
@jwt_required()
def rate_recipe(recipe_id: int):
    """Create or replace the caller's rating and refresh the recipe average."""
    user = require_permission("rate_recipes")
    recipe = _get_visible_recipe(recipe_id)
    payload = parse_json_request(request)
    value = _parse_rating(payload.get("rating"))
    review = _clean_text(payload.get("review"), "review")

    rating = Rating.query.filter_by(user_id=user.id, recipe_id=recipe.id).first()
    if rating is None:
        rating = Rating(user=user, recipe=recipe, rating=value, review=review)
        db.session.add(rating)
    else:
        rating.rating = value
        if "review" in payload:
            rating.review = review
    db.session.flush()
    recipe.recompute_rating()
    analytics.track_interaction(recipe, "rating", user, commit=False)
    db.session.commit()

    return jsonify(
        {
            "success": True,
            "rating": rating.to_dict(),
            "average_rating": recipe.rating,
            "review_count": recipe.review_count,
        }
    )


@recipes_bp.route("/<int:recipe_id>/rating", methods=["GET"])
@jwt_required()
def get_my_rating(recipe_id: int):
    user = require_user()
    recipe = _get_readable_recipe(recipe_id, user)
    rating = Rating.query.filter_by(user_id=user.id, recipe_id=recipe.id).first()
    return jsonify({"success": True, "rating": rating.to_dict() if rating else None})


@recipes_bp.route("/<int:recipe_id>/favorite", methods=["POST"])
@jwt_required()
def toggle_favorite(recipe_id: int):
    user = require_permission("favorite_recipes")
    recipe = _get_visible_recipe(recipe_id)

    favorite = Favorite.query.filter_by(user_id=user.id, recipe_id=recipe.id).first()
    if favorite is not None:
        db.session.delete(favorite)
        favorited = False
    else:
        db.session.add(Favorite(user=user, recipe=recipe))
        analytics.track_interaction(recipe, "favorite", user, commit=False)
        favorited = True
    db.session.commit()
    return jsonify({"success": True, "favorited": favorited})


@recipes_bp.route("/<int:recipe_id>/share", methods=["POST"])
@jwt_required(optional=True)
def share_recipe(recipe_id: int):
    recipe = _get_visible_recipe(recipe_id)
    analytics.track_interaction(recipe, "share", get_current_user())
    return jsonify({"success": True})


# Comments ----------------------------------------------------------------


@recipes_bp.route("/<int:recipe_id>/comments", methods=["GET"])
@jwt_required(optional=True)
def list_comments(recipe_id: int):
    recipe = _get_readable_recipe(recipe_id, get_current_user())
    comments = (
        Comment.query.filter_by(recipe_id=recipe.id, is_removed=False)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .all()
    )
    return jsonify({"success": True, "comments": [comment.to_dict() for comment in comments]})


@recipes_bp.route("/<int:recipe_id>/comments", methods=["POST"])
@jwt_required()
def add_comment(recipe_id: int):
    user = require_user()
    recipe = _get_visible_recipe(recipe_id)
    payload = parse_json_request(request, required_keys=("body",))
    body = _clean_text(payload.get("body"), "body", required=True, max_length=COMMENT_MAX_LENGTH)

    comment = Comment(recipe=recipe, author=user, body=body)
    db.session.add(comment)
    db.session.commit()
    return jsonify({"success": True, "comment": comment.to_dict()}), HTTPStatus.CREATED


@recipes_bp.route("/comments/<int:comment_id>", methods=["DELETE"])
@jwt_required()
def remove_comment(comment_id: int):
    user = require_user()
    comment = db.session.get(Comment, comment_id)
    if comment is None or comment.is_removed:
        raise NotFound("Comment not found.")
    if comment.user_id != user.id and not user.can("moderate_comments"):
        raise Forbidden("You can only remove your own comments.")

    comment.is_removed = True
    db.session.commit()
    if comment.user_id != user.id:
        current_app.logger.info("Moderator %s removed comment %s", user.id, comment.id)
    return jsonify({"success": True, "message": "Comment removed."})
