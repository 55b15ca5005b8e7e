"""Async key-value stores backing the response cache."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from .exceptions import OuraCacheError

_LOGGER = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Async string key-value store."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def keys(self) -> list[str]: ...

    async def delete_many(self, keys: list[str]) -> None: ...


class MemoryStore:
    """In-process store, lost when the process exits."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def keys(self) -> list[str]:
        return list(self._data)

    async def delete_many(self, keys: list[str]) -> None:
        for key in keys:
            self._data.pop(key, None)


class JsonFileStore:
    """Store persisted as one JSON object in a file.

    The file is read on first access and rewritten after every mutation.
    Writes go to a temporary file in the same directory which then replaces
    the target, so a crash never leaves a half-written file behind.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize store.

        Args:
            path: JSON file location; parent directories are created on write
        """
        self._path = Path(path)
        self._data: dict[str, str] | None = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read_file(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        with open(self._path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self._path} does not contain a JSON object")
        return data

    def _write_file(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self._path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    async def _load(self) -> dict[str, str]:
        if self._data is None:
            try:
                self._data = await asyncio.to_thread(self._read_file)
            except (OSError, ValueError) as err:
                raise OuraCacheError(
                    f"Could not read cache file {self._path}: {err}"
                ) from err
            _LOGGER.debug("Loaded %d entries from %s", len(self._data), self._path)
        return self._data

    async def _save(self, data: dict[str, str]) -> None:
        """Write data to disk, then make it the in-memory view."""
        try:
            await asyncio.to_thread(self._write_file, data)
        except OSError as err:
            raise OuraCacheError(
                f"Could not write cache file {self._path}: {err}"
            ) from err
        self._data = data

    async def get(self, key: str) -> str | None:
        async with self._lock:
            data = await self._load()
            return data.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            data = dict(await self._load())
            data[key] = value
            await self._save(data)

    async def keys(self) -> list[str]:
        async with self._lock:
            data = await self._load()
            return list(data)

    async def delete_many(self, keys: list[str]) -> None:
        async with self._lock:
            data = dict(await self._load())
            for key in keys:
                data.pop(key, None)
            await self._save(data)
