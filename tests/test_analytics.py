"""Tests for interaction tracking and the discovery lists."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from flask.testing import FlaskClient

from models import db
from models.rating import Rating
from models.recipe import Recipe
from models.user import User
from services import analytics

NOW = datetime(2026, 6, 1, 12, 0, 0)


def _track(app, recipe_id: int, kind: str, times: int = 1, age: timedelta = timedelta(days=1)):
    with app.app_context():
        recipe = db.session.get(Recipe, recipe_id)
        for _ in range(times):
            analytics.track_interaction(recipe, kind, now=NOW - age, commit=False)
        db.session.commit()


def _rate(app, recipe_id: int, values, age: timedelta = timedelta(days=1)):
    with app.app_context():
        for index, value in enumerate(values):
            user = User(username=f"rater{recipe_id}_{index}", email=f"r{recipe_id}_{index}@example.com")
            user.set_password("Password123")
            db.session.add(user)
            db.session.flush()
            db.session.add(
                Rating(user_id=user.id, recipe_id=recipe_id, rating=value, created_at=NOW - age)
            )
        db.session.commit()


def test_track_interaction_rejects_unknown_type(app, make_user, make_recipe):
    recipe_id = make_recipe(make_user("baker"))
    with app.app_context():
        with pytest.raises(ValueError):
            analytics.track_interaction(db.session.get(Recipe, recipe_id), "like")


def test_trending_weights_recent_interactions(app, make_user, make_recipe):
    author_id = make_user("baker")
    viewed = make_recipe(author_id, "Viewed")
    shared = make_recipe(author_id, "Shared")
    stale = make_recipe(author_id, "Stale")
    hidden = make_recipe(author_id, "Hidden", status="pending")

    _track(app, viewed, "view", times=5)
    _track(app, shared, "share", times=1)
    _track(app, shared, "favorite", times=1)
    _track(app, stale, "share", times=10, age=timedelta(days=11))
    _track(app, hidden, "share", times=10)

    with app.app_context():
        ranked = [(recipe.title, score) for recipe, score in analytics.trending(now=NOW)]

    assert ranked == [("Shared", 6), ("Viewed", 5)]


def test_most_viewed_window(app, make_user, make_recipe):
    author_id = make_user("baker")
    recent = make_recipe(author_id, "Recent")
    old = make_recipe(author_id, "Old")

    _track(app, recent, "view", times=2)
    _track(app, old, "view", times=3, age=timedelta(days=16))
    _track(app, old, "view", times=1)

    with app.app_context():
        ranked = [(recipe.title, views) for recipe, views in analytics.most_viewed(now=NOW)]

    assert ranked == [("Recent", 2), ("Old", 1)]


def test_top_rated_requires_three_recent_ratings_and_breaks_ties_by_volume(app, make_user, make_recipe):
    author_id = make_user("baker")
    few = make_recipe(author_id, "Few")
    popular = make_recipe(author_id, "Popular")
    niche = make_recipe(author_id, "Niche")
    old = make_recipe(author_id, "Old")

    _rate(app, few, [5, 5])
    _rate(app, niche, [5, 5, 4])
    _rate(app, popular, [5, 5, 4, 5, 5, 4])
    _rate(app, old, [5, 5, 5], age=timedelta(days=61))

    with app.app_context():
        ranked = [(recipe.title, count) for recipe, _, count in analytics.top_rated(now=NOW)]

    assert ranked == [("Popular", 6), ("Niche", 3)]


def test_recently_added_window(app, make_user, make_recipe):
    author_id = make_user("baker")
    make_recipe(author_id, "Fresh", created_at=NOW - timedelta(days=2))
    make_recipe(author_id, "Fresher", created_at=NOW - timedelta(days=1))
    make_recipe(author_id, "Ancient", created_at=NOW - timedelta(days=45))

    with app.app_context():
        titles = [recipe.title for recipe in analytics.recently_added(now=NOW)]

    assert titles == ["Fresher", "Fresh"]


def test_recipe_stats(app, make_user, make_recipe):
    recipe_id = make_recipe(make_user("baker"))
    _track(app, recipe_id, "view", times=3)
    _track(app, recipe_id, "view", times=2, age=timedelta(days=20))
    _track(app, recipe_id, "share", times=1)
    _rate(app, recipe_id, [4, 2])

    with app.app_context():
        stats = analytics.recipe_stats(db.session.get(Recipe, recipe_id), now=NOW).to_dict()

    assert stats == {
        "recipe_id": recipe_id,
        "views_last_15_days": 3,
        "ratings_last_60_days": 2,
        "avg_rating_last_60_days": 3.0,
        "interactions_last_10_days": 4,
        "total_interactions": 6,
    }


def test_discovery_endpoints(app, client: FlaskClient, make_user, make_recipe):
    recipe_id = make_recipe(make_user("baker"), "Bagels")
    client.get(f"/api/recipes/{recipe_id}")
    client.post(f"/api/recipes/{recipe_id}/share")

    trending = client.get("/api/recipes/trending").get_json()["recipes"]
    viewed = client.get("/api/recipes/most-viewed").get_json()["recipes"]
    recent = client.get("/api/recipes/recent").get_json()["recipes"]
    top = client.get("/api/recipes/top-rated").get_json()["recipes"]
    stats = client.get(f"/api/recipes/{recipe_id}/stats").get_json()["stats"]

    assert trending[0]["trending_score"] == 5
    assert viewed[0]["recent_views"] == 1
    assert [recipe["title"] for recipe in recent] == ["Bagels"]
    assert top == []
    assert stats["total_interactions"] == 2
