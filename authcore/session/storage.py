"""Persistent secure key-value store collaborators.

The host platform is expected to encrypt at rest; these implementations only
guarantee atomic, owner-only writes.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..errors.internal import StorageError


@runtime_checkable
class SecureStorage(Protocol):
    async def get_item(self, key: str) -> str | None: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def delete_item(self, key: str) -> None: ...


class MemorySecureStorage:
    """Process-local storage for tests and ephemeral hosts."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    async def delete_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileSecureStorage:
    """Single JSON document on disk, rewritten atomically on every change.

    Blocking file I/O runs in the default executor; a lock serializes
    read-modify-write cycles so concurrent writers cannot interleave.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        if not isinstance(path, str | os.PathLike):
            raise TypeError("path must be str or os.PathLike")
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def get_item(self, key: str) -> str | None:
        data = await self._run(self._read_all)
        value = data.get(key)
        return value if isinstance(value, str) else None

    async def set_item(self, key: str, value: str) -> None:
        async with self._lock:
            data = await self._run(self._read_all)
            data[key] = value
            await self._run(self._atomic_write, data)

    async def delete_item(self, key: str) -> None:
        async with self._lock:
            data = await self._run(self._read_all)
            if key not in data:
                return
            del data[key]
            await self._run(self._atomic_write, data)

    @staticmethod
    async def _run(func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    def _read_all(self) -> dict[str, str]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            return {}
        except ValueError as e:
            raise StorageError(f"Corrupt storage file {self.path.name}") from e
        except OSError as e:
            raise StorageError(f"Cannot read storage file: {type(e).__name__}") from e
        if not isinstance(raw, dict):
            raise StorageError(f"Storage file {self.path.name} is not a JSON object")
        return {k: v for k, v in raw.items() if isinstance(k, str) and isinstance(v, str)}

    def _atomic_write(self, data: dict[str, str]) -> None:
        temp_path: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as tmp:
                temp_path = tmp.name
                json.dump(data, tmp, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.chmod(temp_path, 0o600)
            os.replace(temp_path, self.path)
            logging.debug(f"💾 Secure storage saved atomically keys={len(data)}")
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
            raise StorageError(f"Atomic storage write failed: {type(e).__name__}") from e
