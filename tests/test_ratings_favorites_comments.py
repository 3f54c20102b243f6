"""Tests for ratings, favorites, shares and comments on recipes."""

from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from models import db
from models.comment import COMMENT_MAX_LENGTH
from models.interaction import RecipeInteraction
from models.recipe import Recipe


@pytest.fixture()
def published(make_user, make_recipe):
    author_id = make_user("baker")
    return make_recipe(author_id, "Sourdough")


def test_rating_upsert_updates_average(app, client: FlaskClient, make_user, auth_headers, published):
    first = auth_headers(make_user("alice"))
    second = auth_headers(make_user("bob"))

    client.post(f"/api/recipes/{published}/rating", json={"rating": 5}, headers=first)
    response = client.post(
        f"/api/recipes/{published}/rating", json={"rating": 4, "review": "Tangy"}, headers=second
    )
    assert response.get_json()["average_rating"] == 4.5
    assert response.get_json()["review_count"] == 2

    replaced = client.post(f"/api/recipes/{published}/rating", json={"rating": 2}, headers=first)
    assert replaced.status_code == 200
    assert replaced.get_json()["average_rating"] == 3.0
    assert replaced.get_json()["review_count"] == 2

    mine = client.get(f"/api/recipes/{published}/rating", headers=first).get_json()
    assert mine["rating"]["rating"] == 2

    with app.app_context():
        recipe = db.session.get(Recipe, published)
        assert recipe.rating == 3.0
        assert RecipeInteraction.query.filter_by(interaction_type="rating").count() == 3


def test_average_is_rounded_to_one_decimal(client: FlaskClient, make_user, auth_headers, published):
    for value in (5, 4, 4):
        client.post(
            f"/api/recipes/{published}/rating",
            json={"rating": value},
            headers=auth_headers(make_user()),
        )

    data = client.get(f"/api/recipes/{published}").get_json()["recipe"]

    assert data["rating"] == 4.3
    assert data["review_count"] == 3


@pytest.mark.parametrize("value", [0, 6, 3.5, "4", True, None])
def test_rating_rejects_invalid_values(client: FlaskClient, make_user, auth_headers, published, value):
    response = client.post(
        f"/api/recipes/{published}/rating",
        json={"rating": value, "review": "x"},
        headers=auth_headers(make_user("alice")),
    )

    assert response.status_code == 400


def test_cannot_rate_hidden_recipe(client: FlaskClient, make_user, make_recipe, auth_headers):
    author_id = make_user("baker")
    hidden = make_recipe(author_id, "Draft", status="pending")

    response = client.post(
        f"/api/recipes/{hidden}/rating", json={"rating": 5}, headers=auth_headers(author_id)
    )

    assert response.status_code == 404


def test_my_rating_is_null_before_rating(client: FlaskClient, make_user, auth_headers, published):
    response = client.get(f"/api/recipes/{published}/rating", headers=auth_headers(make_user()))

    assert response.status_code == 200
    assert response.get_json()["rating"] is None


def test_favorite_toggle_and_listing(client: FlaskClient, make_user, auth_headers, published):
    headers = auth_headers(make_user("alice"))

    added = client.post(f"/api/recipes/{published}/favorite", headers=headers)
    assert added.get_json()["favorited"] is True

    detail = client.get(f"/api/recipes/{published}", headers=headers).get_json()["recipe"]
    assert detail["is_favorited"] is True

    favorites = client.get("/api/recipes/favorites", headers=headers).get_json()["recipes"]
    assert [recipe["id"] for recipe in favorites] == [published]

    removed = client.post(f"/api/recipes/{published}/favorite", headers=headers)
    assert removed.get_json()["favorited"] is False
    assert client.get("/api/recipes/favorites", headers=headers).get_json()["recipes"] == []

    readded = client.post(f"/api/recipes/{published}/favorite", headers=headers)
    assert readded.get_json()["favorited"] is True


def test_share_is_tracked_for_anonymous_users(app, client: FlaskClient, published):
    response = client.post(f"/api/recipes/{published}/share")

    assert response.status_code == 200
    with app.app_context():
        interaction = RecipeInteraction.query.filter_by(interaction_type="share").one()
        assert interaction.user_id is None


def test_comment_lifecycle(client: FlaskClient, make_user, auth_headers, published):
    author = auth_headers(make_user("alice"))
    other = auth_headers(make_user("bob"))
    moderator = auth_headers(make_user("mod", role="moderator"))

    created = client.post(
        f"/api/recipes/{published}/comments", json={"body": "  Lovely crumb.  "}, headers=author
    )
    assert created.status_code == 201
    comment = created.get_json()["comment"]
    assert comment["body"] == "Lovely crumb."
    assert comment["username"] == "alice"

    second = client.post(
        f"/api/recipes/{published}/comments", json={"body": "Too sour"}, headers=other
    ).get_json()["comment"]

    listed = client.get(f"/api/recipes/{published}/comments").get_json()["comments"]
    assert [entry["id"] for entry in listed] == [comment["id"], second["id"]]

    assert client.delete(f"/api/recipes/comments/{comment['id']}", headers=other).status_code == 403
    assert client.delete(f"/api/recipes/comments/{comment['id']}", headers=author).status_code == 200
    assert client.delete(f"/api/recipes/comments/{second['id']}", headers=moderator).status_code == 200
    assert client.delete(f"/api/recipes/comments/{second['id']}", headers=moderator).status_code == 404

    assert client.get(f"/api/recipes/{published}/comments").get_json()["comments"] == []


def test_comment_validation(client: FlaskClient, make_user, auth_headers, published):
    headers = auth_headers(make_user("alice"))

    blank = client.post(f"/api/recipes/{published}/comments", json={"body": "   "}, headers=headers)
    too_long = client.post(
        f"/api/recipes/{published}/comments",
        json={"body": "x" * (COMMENT_MAX_LENGTH + 1)},
        headers=headers,
    )
    anonymous = client.post(f"/api/recipes/{published}/comments", json={"body": "hi"})

    assert blank.status_code == 400
    assert too_long.status_code == 400
    assert anonymous.status_code == 401


def test_score_only_update_keeps_review(client: FlaskClient, make_user, auth_headers, published):
    headers = auth_headers(make_user("alice"))
    client.post(
        f"/api/recipes/{published}/rating", json={"rating": 4, "review": "Great crust"}, headers=headers
    )

    rescored = client.post(f"/api/recipes/{published}/rating", json={"rating": 5}, headers=headers)
    assert rescored.get_json()["rating"]["review"] == "Great crust"
    assert rescored.get_json()["rating"]["rating"] == 5

    cleared = client.post(
        f"/api/recipes/{published}/rating", json={"rating": 5, "review": None}, headers=headers
    )
    assert cleared.get_json()["rating"]["review"] is None
