"""Recipe interaction tracking and the windowed discovery lists built on it."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from functools import cmp_to_key

from sqlalchemy import func

from models import db
from models.interaction import INTERACTION_TYPES, RecipeInteraction
from models.rating import Rating
from models.recipe import Recipe
from models.user import User

RECENT_WINDOW = timedelta(days=30)
TOP_RATED_WINDOW = timedelta(days=60)
MOST_VIEWED_WINDOW = timedelta(days=15)
TRENDING_WINDOW = timedelta(days=10)

TOP_RATED_MIN_RATINGS = 3
TOP_RATED_TIE_MARGIN = 0.1

TRENDING_WEIGHTS = {"view": 1, "rating": 3, "favorite": 2, "share": 4}


@dataclass
class RecipeStats:
    recipe_id: int
    views_last_15_days: int
    ratings_last_60_days: int
    avg_rating_last_60_days: float
    interactions_last_10_days: int
    total_interactions: int

    def to_dict(self) -> dict:
        return asdict(self)


def track_interaction(
    recipe: Recipe,
    interaction_type: str,
    user: User | None = None,
    *,
    now: datetime | None = None,
    commit: bool = True,
) -> RecipeInteraction:
    """Record one interaction; a view also bumps the recipe's view counter."""

    if interaction_type not in INTERACTION_TYPES:
        raise ValueError(f"Unknown interaction type: {interaction_type}")

    interaction = RecipeInteraction(
        recipe_id=recipe.id,
        user_id=user.id if user is not None else None,
        interaction_type=interaction_type,
        created_at=now or datetime.utcnow(),
    )
    db.session.add(interaction)
    if interaction_type == "view":
        recipe.view_count = (recipe.view_count or 0) + 1
    if commit:
        db.session.commit()
    return interaction


def _visible_by_id(recipe_ids) -> dict[int, Recipe]:
    ids = list(recipe_ids)
    if not ids:
        return {}
    recipes = Recipe.visible_filter(Recipe.query).filter(Recipe.id.in_(ids)).all()
    return {recipe.id: recipe for recipe in recipes}


def recently_added(limit: int = 10, now: datetime | None = None) -> list[Recipe]:
    since = (now or datetime.utcnow()) - RECENT_WINDOW
    return (
        Recipe.visible_filter(Recipe.query)
        .filter(Recipe.created_at >= since)
        .order_by(Recipe.created_at.desc())
        .limit(limit)
        .all()
    )


def _compare_top_rated(a: tuple, b: tuple) -> int:
    # Entries are (recipe, average, count). Near-equal averages defer to volume.
    diff = b[1] - a[1]
    if abs(diff) < TOP_RATED_TIE_MARGIN:
        return b[2] - a[2]
    return 1 if diff > 0 else -1


def top_rated(limit: int = 10, now: datetime | None = None) -> list[tuple[Recipe, float, int]]:
    """Visible recipes ranked by their average over recent ratings."""

    since = (now or datetime.utcnow()) - TOP_RATED_WINDOW
    rows = (
        db.session.query(
            Rating.recipe_id,
            func.avg(Rating.rating),
            func.count(Rating.id),
        )
        .filter(Rating.created_at >= since)
        .group_by(Rating.recipe_id)
        .having(func.count(Rating.id) >= TOP_RATED_MIN_RATINGS)
        .all()
    )
    recipes = _visible_by_id(row[0] for row in rows)
    ranked = [
        (recipes[recipe_id], float(average), int(count))
        for recipe_id, average, count in rows
        if recipe_id in recipes
    ]
    ranked.sort(key=cmp_to_key(_compare_top_rated))
    return ranked[:limit]


def most_viewed(limit: int = 10, now: datetime | None = None) -> list[tuple[Recipe, int]]:
    since = (now or datetime.utcnow()) - MOST_VIEWED_WINDOW
    rows = (
        db.session.query(RecipeInteraction.recipe_id, func.count(RecipeInteraction.id))
        .filter(
            RecipeInteraction.interaction_type == "view",
            RecipeInteraction.created_at >= since,
        )
        .group_by(RecipeInteraction.recipe_id)
        .all()
    )
    recipes = _visible_by_id(row[0] for row in rows)
    ranked = [(recipes[recipe_id], int(views)) for recipe_id, views in rows if recipe_id in recipes]
    ranked.sort(key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def trending_score(counts: dict[str, int]) -> int:
    return sum(TRENDING_WEIGHTS[kind] * counts.get(kind, 0) for kind in TRENDING_WEIGHTS)


def trending(limit: int = 10, now: datetime | None = None) -> list[tuple[Recipe, int]]:
    """Visible recipes with recent interactions, ranked by weighted score."""

    since = (now or datetime.utcnow()) - TRENDING_WINDOW
    rows = (
        db.session.query(
            RecipeInteraction.recipe_id,
            RecipeInteraction.interaction_type,
            func.count(RecipeInteraction.id),
        )
        .filter(RecipeInteraction.created_at >= since)
        .group_by(RecipeInteraction.recipe_id, RecipeInteraction.interaction_type)
        .all()
    )
    counts: dict[int, dict[str, int]] = {}
    for recipe_id, kind, total in rows:
        counts.setdefault(recipe_id, {})[kind] = int(total)

    recipes = _visible_by_id(counts)
    ranked = [
        (recipes[recipe_id], trending_score(by_kind))
        for recipe_id, by_kind in counts.items()
        if recipe_id in recipes
    ]
    ranked.sort(key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def recipe_stats(recipe: Recipe, now: datetime | None = None) -> RecipeStats:
    now = now or datetime.utcnow()
    interactions = RecipeInteraction.query.filter_by(recipe_id=recipe.id)

    views = interactions.filter(
        RecipeInteraction.interaction_type == "view",
        RecipeInteraction.created_at >= now - MOST_VIEWED_WINDOW,
    ).count()
    recent_interactions = interactions.filter(
        RecipeInteraction.created_at >= now - TRENDING_WINDOW
    ).count()

    rating_count, rating_avg = (
        db.session.query(func.count(Rating.id), func.avg(Rating.rating))
        .filter(
            Rating.recipe_id == recipe.id,
            Rating.created_at >= now - TOP_RATED_WINDOW,
        )
        .one()
    )

    return RecipeStats(
        recipe_id=recipe.id,
        views_last_15_days=views,
        ratings_last_60_days=int(rating_count or 0),
        avg_rating_last_60_days=float(rating_avg) if rating_avg is not None else 0.0,
        interactions_last_10_days=recent_interactions,
        total_interactions=interactions.count(),
    )
