"""Tests for profile editing, avatars and account deletion."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from conftest import build_app
from flask.testing import FlaskClient
from sqlalchemy.orm import Session

from models import db
from models.rating import Rating
from models.recipe import Recipe
from models.user import User
from services import sessions


def _upload(client: FlaskClient, headers, data: bytes = b"\x89PNG fake", name="me.png", mimetype="image/png"):
    return client.post(
        "/api/user/avatar",
        data={"avatar": (io.BytesIO(data), name, mimetype)},
        headers=headers,
        content_type="multipart/form-data",
    )


def test_update_profile(client: FlaskClient, make_user, auth_headers, outbox):
    headers = auth_headers(make_user("alice", email="alice@example.com"))

    response = client.put(
        "/api/user/profile",
        json={
            "username": "alice_cooks",
            "email": "alice@example.com",
            "bio": "  Home baker. ",
            "location": "Leeds",
        },
        headers=headers,
    )

    assert response.status_code == 200
    user = response.get_json()["user"]
    assert user["username"] == "alice_cooks"
    assert user["bio"] == "Home baker."
    assert user["is_verified"] is True
    assert len(outbox) == 0


def test_changing_email_requires_reverification(client: FlaskClient, make_user, auth_headers, outbox):
    headers = auth_headers(make_user("alice", email="alice@example.com"))

    response = client.put(
        "/api/user/profile",
        json={"username": "alice", "email": "Alice.New@Example.com"},
        headers=headers,
    )

    user = response.get_json()["user"]
    assert user["email"] == "alice.new@example.com"
    assert user["is_verified"] is False
    assert outbox[-1].recipients == ["alice.new@example.com"]


def test_profile_conflicts(client: FlaskClient, make_user, auth_headers):
    make_user("bob", email="bob@example.com")
    headers = auth_headers(make_user("alice", email="alice@example.com"))

    email_taken = client.put(
        "/api/user/profile", json={"username": "alice", "email": "BOB@example.com"}, headers=headers
    )
    name_taken = client.put(
        "/api/user/profile", json={"username": "Bob", "email": "alice@example.com"}, headers=headers
    )

    assert email_taken.status_code == 409
    assert name_taken.status_code == 409


def test_avatar_upload_serve_and_delete(app, client: FlaskClient, make_user, auth_headers):
    user_id = make_user("alice")
    headers = auth_headers(user_id)

    uploaded = _upload(client, headers)
    assert uploaded.status_code == 200
    avatar_url = uploaded.get_json()["avatar"]
    assert avatar_url.startswith("/api/user/avatars/")
    assert avatar_url.endswith(".png")

    served = client.get(avatar_url)
    assert served.status_code == 200
    assert served.data == b"\x89PNG fake"
    assert served.mimetype == "image/png"
    served.close()

    stored = Path(app.config["UPLOAD_DIR"]) / "avatars" / avatar_url.rsplit("/", 1)[-1]
    assert stored.is_file()

    replaced = _upload(client, headers, data=b"second")
    assert replaced.status_code == 200
    assert not stored.exists()

    removed = client.delete("/api/user/avatar", headers=headers)
    assert removed.status_code == 200
    with app.app_context():
        assert db.session.get(User, user_id).avatar is None
    assert client.get(replaced.get_json()["avatar"]).status_code == 404


def test_avatar_rejects_bad_uploads(app, client: FlaskClient, make_user, auth_headers):
    headers = auth_headers(make_user("alice"))
    app.config["AVATAR_MAX_SIZE"] = 10

    not_image = _upload(client, headers, name="notes.txt", mimetype="text/plain")
    too_big = _upload(client, headers, data=b"x" * 11)
    missing = client.post("/api/user/avatar", data={}, headers=headers, content_type="multipart/form-data")

    assert not_image.status_code == 400
    assert too_big.status_code == 400
    assert missing.status_code == 400


def test_serve_unknown_avatar(client: FlaskClient):
    assert client.get("/api/user/avatars/missing.png").status_code == 404
    assert client.get("/api/user/avatars/..").status_code == 404


def test_delete_account_cascades_and_recomputes(app, client: FlaskClient, make_user, make_recipe, auth_headers):
    leaving_id = make_user("leaving")
    staying_id = make_user("staying")
    own_recipe = make_recipe(leaving_id, "Goodbye Pie")
    other_recipe = make_recipe(staying_id, "Hello Soup")
    leaving = auth_headers(leaving_id)

    client.post(f"/api/recipes/{other_recipe}/rating", json={"rating": 1}, headers=leaving)
    client.post(f"/api/recipes/{other_recipe}/rating", json={"rating": 5}, headers=auth_headers(staying_id))
    client.post(f"/api/recipes/{other_recipe}/favorite", headers=leaving)
    client.post(f"/api/recipes/{other_recipe}/comments", json={"body": "bye"}, headers=leaving)

    response = client.delete("/api/user/account", headers=leaving)

    assert response.status_code == 200
    assert client.get("/api/auth/me", headers=leaving).status_code == 401
    with app.app_context():
        assert db.session.get(User, leaving_id) is None
        assert db.session.get(Recipe, own_recipe) is None
        recipe = db.session.get(Recipe, other_recipe)
        assert recipe.rating == 5.0
        assert recipe.review_count == 1
        assert Rating.query.filter_by(user_id=leaving_id).count() == 0
        assert recipe.comments == []
        assert recipe.favorites == []


@pytest.mark.parametrize(
    "name, mimetype",
    [
        ("x.html", "image/png"),
        ("x.svg", "image/svg+xml"),
        ("avatar", "image/png"),
        ("x.png.js", "image/png"),
    ],
)
def test_avatar_requires_known_image_extension(app, client: FlaskClient, make_user, auth_headers, name, mimetype):
    user_id = make_user("alice")

    response = _upload(client, auth_headers(user_id), data=b"<script>alert(1)</script>", name=name, mimetype=mimetype)

    assert response.status_code == 400
    with app.app_context():
        assert db.session.get(User, user_id).avatar is None
    avatars = Path(app.config["UPLOAD_DIR"]) / "avatars"
    assert not avatars.exists() or not any(avatars.iterdir())


def test_stored_non_image_files_are_not_served(app, client: FlaskClient):
    avatars = Path(app.config["UPLOAD_DIR"]) / "avatars"
    avatars.mkdir(parents=True, exist_ok=True)
    (avatars / "page.html").write_text("<script>alert(1)</script>")

    assert client.get("/api/user/avatars/page.html").status_code == 404


def test_relative_upload_dir_serves_avatars(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    application = build_app(tmp_path, UPLOAD_DIR="relative_uploads")
    with application.app_context():
        db.create_all()
        user = User(username="alice", email="alice@example.com", is_verified=True)
        user.set_password("Password123")
        db.session.add(user)
        db.session.commit()
        headers = {"Authorization": f"Bearer {sessions.start_session(user)}"}

    client = application.test_client()
    uploaded = _upload(client, headers)
    assert uploaded.status_code == 200

    served = client.get(uploaded.get_json()["avatar"])
    assert served.status_code == 200
    assert served.data == b"\x89PNG fake"
    served.close()
    assert any((tmp_path / "relative_uploads" / "avatars").iterdir())

    with application.app_context():
        db.session.remove()
        db.drop_all()


def test_failed_account_deletion_keeps_avatar_file(app, client: FlaskClient, make_user, auth_headers, monkeypatch):
    user_id = make_user("alice")
    headers = auth_headers(user_id)
    avatar_url = _upload(client, headers).get_json()["avatar"]
    stored = Path(app.config["UPLOAD_DIR"]) / "avatars" / avatar_url.rsplit("/", 1)[-1]

    def _failing_commit(self):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(Session, "commit", _failing_commit)
    response = client.delete("/api/user/account", headers=headers)
    monkeypatch.undo()

    assert response.status_code == 500
    assert stored.is_file()
    with app.app_context():
        assert db.session.get(User, user_id) is not None


def test_profile_rejects_non_string_fields(client: FlaskClient, make_user, auth_headers):
    headers = auth_headers(make_user("alice", email="alice@example.com"))

    for payload in (
        {"username": 12345, "email": "alice@example.com"},
        {"username": "alice", "email": ["alice@example.com"]},
    ):
        response = client.put("/api/user/profile", json=payload, headers=headers)
        assert response.status_code == 400
        assert "must be a string" in response.get_json()["detail"]
