"""Application configuration module."""

import os
from datetime import timedelta
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _database_url() -> str:
    url = os.getenv("DATABASE_URL", "sqlite:///recipes.db")
    # Hosted Postgres providers still hand out the legacy scheme.
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


class Config:
    """Base configuration for the Flask application."""

    # Core
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    DATABASE_URL = _database_url()
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    UPLOAD_DIR = os.getenv("UPLOAD_DIR", str(Path("workspace") / "uploads"))
    AVATAR_MAX_SIZE = int(os.getenv("AVATAR_MAX_SIZE", 5 * 1024 * 1024))
    APP_URL = os.getenv("APP_URL", "http://localhost:3000").rstrip("/")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Sessions
    SESSION_LIFETIME = timedelta(days=int(os.getenv("SESSION_LIFETIME_DAYS", "7")))
    JWT_TOKEN_LOCATION = ["headers", "cookies"]
    JWT_ACCESS_TOKEN_EXPIRES = SESSION_LIFETIME
    JWT_ACCESS_COOKIE_NAME = "session_token"
    JWT_ACCESS_COOKIE_PATH = "/"
    JWT_COOKIE_SECURE = _env_bool("SESSION_COOKIE_SECURE", False)
    JWT_COOKIE_SAMESITE = "Lax"
    JWT_COOKIE_CSRF_PROTECT = _env_bool("JWT_COOKIE_CSRF_PROTECT", True)

    # Email tokens
    EMAIL_VERIFICATION_TOKEN_TTL = timedelta(hours=24)
    PASSWORD_RESET_TOKEN_TTL = timedelta(hours=1)

    # Mail
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.resend.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", True)
    MAIL_USERNAME = os.getenv("MAIL_USERNAME", "resend")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD") or os.getenv("RESEND_API_KEY")
    MAIL_DEFAULT_SENDER = os.getenv("FROM_EMAIL", "contact@justthedamnrecipe.net")

    # CORS
    _raw_origins = os.getenv("ORIGINS", "*")
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

    # Rate limiting
    RATE_LIMIT = os.getenv("RATE_LIMIT", "60 per minute")
    AUTH_RATE_LIMIT = os.getenv("AUTH_RATE_LIMIT", "10 per minute")
    RATELIMIT_ENABLED = _env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_KEY_PREFIX = os.getenv("RATELIMIT_KEY_PREFIX", "")
