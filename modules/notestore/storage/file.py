"""
File Key-Value Store.

Stores each key as its own UTF-8 file inside a directory. Writes go to a
temporary sibling first and are moved into place with os.replace, so a
record is either the old value or the new one, never a partial write.

Blocking file I/O runs in a worker thread to keep the event loop free.
"""

import asyncio
import os
import tempfile
from pathlib import Path
from urllib.parse import quote

from modules.notestore.core.exceptions import StorageError
from modules.notestore.core.logging import get_logger
from modules.notestore.storage.base import KeyValueStore

logger = get_logger(__name__)


class FileKeyValueStore(KeyValueStore):
    """One file per key under ``directory``."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}.json"

    def _read(self, key: str) -> str | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, self._path_for(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _delete(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)

    async def get(self, key: str) -> str | None:
        try:
            return await asyncio.to_thread(self._read, key)
        except OSError as e:
            logger.error("Store read failed", extra={"key": key, "error": str(e)})
            raise StorageError(f"Could not read {key}: {e}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._write, key, value)
        except OSError as e:
            logger.error("Store write failed", extra={"key": key, "error": str(e)})
            raise StorageError(f"Could not write {key}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._delete, key)
        except OSError as e:
            logger.error("Store delete failed", extra={"key": key, "error": str(e)})
            raise StorageError(f"Could not delete {key}: {e}") from e
