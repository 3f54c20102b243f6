"""Database initialization and model exports."""

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()

# Import models to register them with SQLAlchemy metadata.
from .user import User  # noqa: E402,F401
from .session import UserSession  # noqa: E402,F401
from .email_token import EmailToken  # noqa: E402,F401
from .moderation_note import ModerationNote  # noqa: E402,F401
from .recipe import Recipe, RecipeIngredient, RecipeInstruction, RecipeTag  # noqa: E402,F401
from .rating import Rating  # noqa: E402,F401
from .favorite import Favorite  # noqa: E402,F401
from .comment import Comment  # noqa: E402,F401
from .interaction import RecipeInteraction  # noqa: E402,F401

__all__ = [
    "db",
    "User",
    "UserSession",
    "EmailToken",
    "ModerationNote",
    "Recipe",
    "RecipeIngredient",
    "RecipeInstruction",
    "RecipeTag",
    "Rating",
    "Favorite",
    "Comment",
    "RecipeInteraction",
]
