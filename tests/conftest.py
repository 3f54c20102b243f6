"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from extensions import mail  # noqa: E402
from models import db  # noqa: E402
from models.recipe import Recipe  # noqa: E402
from models.user import User  # noqa: E402
from services import sessions  # noqa: E402

DEFAULT_PASSWORD = "Password123"


class BaseTestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key-with-enough-length-1234"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length-1234"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    RATELIMIT_ENABLED = False
    RATELIMIT_KEY_PREFIX = ""
    JWT_COOKIE_CSRF_PROTECT = False
    MAIL_SUPPRESS_SEND = True
    MAIL_PASSWORD = None
    APP_URL = "http://recipes.test"
    CORS_ORIGINS = "*"


def build_app(tmp_path: Path, **overrides) -> Flask:
    upload_dir = tmp_path / "uploads"

    class TestConfig(BaseTestConfig):
        UPLOAD_DIR = str(upload_dir)

    for key, value in overrides.items():
        setattr(TestConfig, key, value)

    return create_app(TestConfig)


@pytest.fixture()
def app(tmp_path) -> Flask:
    """Create a Flask application instance for tests."""

    application = build_app(tmp_path)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def outbox(app: Flask):
    """Collect every email the app sends during a test."""

    with mail.record_messages() as messages:
        yield messages


@pytest.fixture()
def make_user(app: Flask):
    """Persist a user and return its id."""

    counter = {"n": 0}

    def _make_user(
        username: str | None = None,
        *,
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        role: str = "user",
        status: str = "active",
        verified: bool = True,
    ) -> int:
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        with app.app_context():
            user = User(
                username=username,
                email=email or f"{username}@example.com",
                role=role,
                status=status,
                is_verified=verified,
            )
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id

    return _make_user


@pytest.fixture()
def auth_headers(app: Flask):
    """Open a server-side session for a user id and return bearer headers."""

    def _auth_headers(user_id: int) -> dict[str, str]:
        with app.app_context():
            token = sessions.start_session(db.session.get(User, user_id))
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture()
def make_recipe(app: Flask):
    """Persist a recipe for an author and return its id."""

    def _make_recipe(
        author_id: int,
        title: str = "Weeknight Chili",
        *,
        status: str = "approved",
        category: str = "Main Course",
        difficulty: str = "Easy",
        description: str | None = None,
        tags: list[str] | None = None,
        ingredients: list[str] | None = None,
        prep_time_minutes: int = 10,
        cook_time_minutes: int = 20,
        rating: float = 0.0,
        review_count: int = 0,
        view_count: int = 0,
        created_at=None,
    ) -> int:
        with app.app_context():
            recipe = Recipe(
                author_id=author_id,
                title=title,
                description=description,
                category=category,
                difficulty=difficulty,
                prep_time_minutes=prep_time_minutes,
                cook_time_minutes=cook_time_minutes,
                servings=4,
                moderation_status=status,
                is_published=status == "approved",
                rating=rating,
                review_count=review_count,
                view_count=view_count,
            )
            if created_at is not None:
                recipe.created_at = created_at
            recipe.replace_tags(tags or [])
            recipe.replace_ingredients([{"ingredient": name} for name in ingredients or []])
            recipe.replace_instructions(["Cook it."])
            db.session.add(recipe)
            db.session.commit()
            return recipe.id

    return _make_recipe
