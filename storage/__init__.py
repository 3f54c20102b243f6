"""Storage backends."""

from pathlib import Path

from flask import current_app

from .abstract_storage import AbstractStorage
from .local_storage import LocalStorage

__all__ = ["AbstractStorage", "LocalStorage", "avatar_storage"]


def avatar_storage() -> LocalStorage:
    """Storage for profile pictures under ``UPLOAD_DIR/avatars``."""

    return LocalStorage(Path(current_app.config["UPLOAD_DIR"]) / "avatars")
