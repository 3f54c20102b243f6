"""Transactional email rendered from Jinja templates and sent via Flask-Mail."""

from __future__ import annotations

from flask import current_app, render_template
from flask_mail import Message

from extensions import mail
from models.recipe import Recipe
from models.user import User


def _link(path: str, token: str) -> str:
    return f"{current_app.config['APP_URL']}{path}?token={token}"


def _send(subject: str, recipient: str, template: str, **context) -> bool:
    """Render and deliver one message; delivery failures are logged, not raised."""

    context.setdefault("app_url", current_app.config["APP_URL"])
    message = Message(
        subject,
        recipients=[recipient],
        html=render_template(f"email/{template}.html", **context),
        body=render_template(f"email/{template}.txt", **context),
    )
    try:
        mail.send(message)
    except Exception:
        current_app.logger.exception("Failed to send %s email to %s", template, recipient)
        return False
    current_app.logger.info("Sent %s email to %s", template, recipient)
    return True


def send_verification_email(user: User, token: str) -> bool:
    return _send(
        "Verify your email address",
        user.email,
        "verification",
        user=user,
        link=_link("/verify-email", token),
    )


def send_password_reset_email(user: User, token: str) -> bool:
    return _send(
        "Reset your password",
        user.email,
        "password_reset",
        user=user,
        link=_link("/reset-password", token),
    )


def send_welcome_email(user: User) -> bool:
    return _send("Welcome to Just The Damn Recipe", user.email, "welcome", user=user)


def send_recipe_status_email(recipe: Recipe) -> bool:
    """Tell the author that a moderator approved or rejected their recipe."""

    author = recipe.author
    if author is None:
        return False
    subject = (
        f'Your recipe "{recipe.title}" was approved'
        if recipe.moderation_status == "approved"
        else f'Your recipe "{recipe.title}" was not approved'
    )
    return _send(subject, author.email, "recipe_status", user=author, recipe=recipe)
