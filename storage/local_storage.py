"""Local filesystem storage implementation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import IO

from werkzeug.utils import secure_filename

from .abstract_storage import AbstractStorage


class LocalStorage(AbstractStorage):
    """Persist files in one directory on the local filesystem."""

    def __init__(self, base_directory: str | os.PathLike):
        self.base_directory = Path(base_directory).resolve()
        os.makedirs(self.base_directory, exist_ok=True)

    def _safe_name(self, name: str) -> str:
        safe_name = secure_filename(name)
        if not safe_name:
            raise ValueError("Filename must contain at least one valid character.")
        return safe_name

    def save(self, file_obj: IO[bytes], filename: str) -> str:
        safe_name = self._safe_name(filename)
        destination = self.base_directory / safe_name
        if hasattr(file_obj, "save"):
            file_obj.save(destination)  # type: ignore[arg-type]
        else:
            with open(destination, "wb") as output:
                output.write(file_obj.read())
        return safe_name

    def exists(self, name: str) -> bool:
        return (self.base_directory / self._safe_name(name)).is_file()

    def delete(self, name: str) -> bool:
        path = self.base_directory / self._safe_name(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def path_for(self, name: str) -> Path:
        return self.base_directory / self._safe_name(name)
