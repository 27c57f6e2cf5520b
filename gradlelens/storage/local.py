"""
Local filesystem storage backend.

Provides a filesystem-based implementation of the storage interface,
suitable for keeping the release ledger next to a project.
"""

from __future__ import annotations

from pathlib import Path
from typing import TypeVar

import aiofiles
from pydantic import BaseModel

from .interface import StorageBackend

T = TypeVar("T", bound=BaseModel)


class LocalStorageBackend(StorageBackend):
    """Local filesystem storage backend."""

    def __init__(self, base_path: Path) -> None:
        """Initialize local storage.

        Args:
            base_path: Base directory for all storage operations
        """
        self.base_path = base_path.resolve()

    async def _ensure_parent(self, path: Path) -> None:
        parent = path.parent
        if not parent.exists():
            parent.mkdir(parents=True, exist_ok=True)

    def _get_full_path(self, key: str) -> Path:
        """Get full filesystem path for a key.

        Normalizes the key to prevent path traversal and ensures the resulting
        path is within the base storage directory.

        Args:
            key: The storage key to convert to a filesystem path.

        Returns:
            The resolved absolute path within the base storage directory.
        """
        clean_key = key.lstrip("/\\").replace("..", "").replace(":", "")
        full_path = (self.base_path / clean_key).resolve()

        try:
            full_path.relative_to(self.base_path)
        except ValueError:
            clean_key = clean_key.replace("/", "_").replace("\\", "_")
            full_path = self.base_path / clean_key

        return full_path

    async def store_text(self, key: str, content: str) -> str:
        """Store text content to filesystem."""
        full_path = self._get_full_path(key)
        await self._ensure_parent(full_path)

        async with aiofiles.open(full_path, "w", encoding="utf-8") as f:
            await f.write(content)

        return key

    async def store_model(self, key: str, model: BaseModel) -> str:
        """Store a Pydantic model as JSON, using field aliases."""
        return await self.store_text(key, model.model_dump_json(by_alias=True, exclude_unset=True, indent=2))

    async def load_text(self, key: str) -> str:
        """Load text content from filesystem.

        Raises:
            FileNotFoundError: If the key doesn't exist.
        """
        full_path = self._get_full_path(key)

        if not full_path.exists():
            raise FileNotFoundError(f"Key not found: {key}")

        async with aiofiles.open(full_path, "r", encoding="utf-8") as f:
            return await f.read()

    async def load_model(self, key: str, model_type: type[T]) -> T:
        """Load a Pydantic model from filesystem."""
        content = await self.load_text(key)
        return model_type.model_validate_json(content)

    async def list_keys(self, prefix: str = "") -> list[str]:
        """List all keys with the given prefix."""
        search_path = self._get_full_path(prefix) if prefix else self.base_path

        if not search_path.exists():
            return []

        keys = []
        base_str = str(self.base_path)
        for path in search_path.rglob("*"):
            if path.is_file():
                key = str(path)[len(base_str) + 1:].replace("\\", "/")
                keys.append(key)

        return sorted(keys)
