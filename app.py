"""Application factory."""

import json
import os
import uuid

import click
from flask import Flask, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config import Config
from extensions import jwt, limiter, mail, migrate
from models import db
from models.user import User
from routes.admin import admin_bp
from routes.auth import auth_bp
from routes.recipes import recipes_bp
from routes.users import users_bp
from services import sessions
from services.email_tokens import cleanup_expired_tokens


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)
    _register_jwt_callbacks()

    # CORS
    CORS(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Rate limiting; a fresh key prefix keeps counters of separate apps apart.
    if not app.config.get("RATELIMIT_KEY_PREFIX"):
        app.config["RATELIMIT_KEY_PREFIX"] = str(uuid.uuid4())
    limiter.init_app(app)

    # Ensure uploads directory exists
    upload_dir = app.config.get("UPLOAD_DIR")
    if upload_dir:
        os.makedirs(upload_dir, exist_ok=True)

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(recipes_bp, url_prefix="/api/recipes")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(users_bp, url_prefix="/api/user")

    # Health
    @app.route("/api/health", methods=["GET"])
    def health_check():
        return jsonify(
            {
                "success": True,
                "status": "ok",
                "services": {
                    "database": bool(app.config.get("SQLALCHEMY_DATABASE_URI")),
                    "mail": bool(app.config.get("MAIL_PASSWORD")),
                },
            }
        )

    _register_error_handlers(app)
    _register_cli(app)

    return app


def _error_payload(name: str, detail: str) -> dict:
    request_id = g.get("request_id") or str(uuid.uuid4())
    return {"success": False, "error": name, "detail": detail, "request_id": request_id}


def _auth_error(detail: str):
    response = jsonify(_error_payload("Unauthorized", detail))
    response.status_code = 401
    return response


def _register_jwt_callbacks() -> None:
    """Bind token lookups to server-side sessions and unify auth error bodies."""

    @jwt.user_lookup_loader
    def _load_user(_jwt_header, jwt_data):
        try:
            user_id = int(jwt_data["sub"])
        except (KeyError, TypeError, ValueError):
            return None
        return db.session.get(User, user_id)

    @jwt.token_in_blocklist_loader
    def _is_revoked(_jwt_header, jwt_data) -> bool:
        return sessions.is_session_revoked(jwt_data.get("jti"))

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return _auth_error(reason)

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return _auth_error(f"Invalid session token: {reason}")

    @jwt.expired_token_loader
    def _expired_token(_jwt_header, _jwt_data):
        return _auth_error("Session has expired.")

    @jwt.revoked_token_loader
    def _revoked_token(_jwt_header, _jwt_data):
        return _auth_error("Session has ended. Please log in again.")

    @jwt.user_lookup_error_loader
    def _unknown_user(_jwt_header, _jwt_data):
        return _auth_error("User not found.")


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():  # pragma: no cover
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):  # pragma: no cover
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        payload = _error_payload(getattr(error, "name", "Error"), error.description)
        response = error.get_response()
        response.data = json.dumps(payload)
        response.content_type = "application/json"
        response.headers.setdefault("X-Request-ID", payload["request_id"])
        return response

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        db.session.rollback()
        app.logger.exception("Unhandled application error", exc_info=error)
        payload = _error_payload("Internal Server Error", "An unexpected error occurred.")
        response = jsonify(payload)
        response.status_code = 500
        response.headers.setdefault("X-Request-ID", payload["request_id"])
        return response


def _register_cli(app: Flask) -> None:
    @app.cli.command("init-db")
    def init_db_command():
        """Create all database tables."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("cleanup-tokens")
    def cleanup_tokens_command():
        """Delete expired or used email tokens and expired sessions."""
        tokens = cleanup_expired_tokens()
        expired_sessions = sessions.purge_expired_sessions()
        click.echo(f"Removed {tokens} email tokens and {expired_sessions} sessions.")


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
