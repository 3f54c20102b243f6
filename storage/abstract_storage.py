"""Storage abstraction for uploaded media."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO


class AbstractStorage(ABC):
    """Interface for storage backends holding user uploads."""

    @abstractmethod
    def save(self, file_obj: IO[bytes], filename: str) -> str:
        """Persist a file and return its name within the storage area."""

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Return whether ``name`` is present in storage."""

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Remove ``name``; return False when there was nothing to remove."""

    @abstractmethod
    def path_for(self, name: str) -> Path:
        """Resolve ``name`` to a filesystem path that can be served."""
