"""
Backup File Service.

Writes backup documents to a directory, reads them back, and records the
metadata of the most recent backup in the key-value store.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from modules.notestore.core.exceptions import (
    MalformedDocumentError,
    PersistenceError,
    StorageError,
)
from modules.notestore.core.utils import utc_now
from modules.notestore.repositories.note import NoteRepository
from modules.notestore.schemas.backup import BackupDocument, BackupMetadata
from modules.notestore.services.backup import BackupCodec
from modules.notestore.services.base import BaseService


def backup_filename(prefix: str, now: datetime) -> str:
    """``<prefix>_YYYY-MM-DD_HH-MM-SS.json`` for the given moment."""
    return f"{prefix}_{now:%Y-%m-%d_%H-%M-%S}.json"


class BackupFileService(BaseService):
    """Backup files on the local file system."""

    def __init__(
        self,
        repository: NoteRepository,
        filename_prefix: str = "notes_backup",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__(repository)
        self.filename_prefix = filename_prefix
        self._clock = clock

    async def write(self, document: BackupDocument, directory: str | Path) -> Path:
        """
        Write a backup document into ``directory``.

        Metadata about the backup is recorded afterwards; failing to record
        it is logged and does not fail the backup.

        Returns:
            Path of the written file

        Raises:
            PersistenceError: If the file could not be written
        """
        now = self._clock()
        path = Path(directory) / backup_filename(self.filename_prefix, now)
        payload = BackupCodec.dumps(document)

        try:
            await asyncio.to_thread(self._write_file, path, payload)
        except OSError as e:
            self._logger.error("Backup write failed", extra={"path": str(path), "error": str(e)})
            raise PersistenceError(f"Failed to write backup file {path.name}") from e

        self._log_operation("Backup written", path=str(path), note_count=document.note_count)
        await self._record_metadata(
            BackupMetadata(
                last_backup=now,
                filename=path.name,
                note_count=document.note_count,
                backup_path=str(path),
            )
        )
        return path

    @staticmethod
    def _write_file(path: Path, payload: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")
        if not path.exists():
            raise OSError(f"File was not created: {path}")

    async def read(self, path: str | Path) -> str:
        """
        Read a backup file's text.

        Raises:
            MalformedDocumentError: If the file is missing, unreadable or blank
        """
        path = Path(path)
        try:
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self._logger.warning("Backup read failed", extra={"path": str(path), "error": str(e)})
            raise MalformedDocumentError(
                "Could not access the selected file. Please try selecting the file again."
            ) from e

        if not content.strip():
            raise MalformedDocumentError("The selected file is empty or corrupted.")

        self._log_debug("Backup read", path=str(path), size=len(content))
        return content

    async def last_backup(self) -> BackupMetadata | None:
        """Metadata of the most recent backup, if one was recorded."""
        key = self.repository.keys.backup_metadata
        try:
            raw = await self.repository.store.get(key)
        except StorageError as e:
            self._logger.warning("Backup metadata unavailable", extra={"error": str(e)})
            return None
        if raw is None:
            return None
        try:
            return BackupMetadata.model_validate_json(raw)
        except PydanticValidationError:
            self._logger.warning("Backup metadata is corrupted", extra={"key": key})
            return None

    async def _record_metadata(self, metadata: BackupMetadata) -> None:
        key = self.repository.keys.backup_metadata
        try:
            await self.repository.store.set(key, metadata.model_dump_json(by_alias=True))
        except StorageError as e:
            self._logger.warning("Backup metadata not saved", extra={"error": str(e)})
