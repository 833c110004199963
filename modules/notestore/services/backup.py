"""
Backup Codec.

Serializes the active collection into the portable backup document and
turns an external document back into importable notes.

Export is lossy in two fields: image references are omitted. Import assigns
fresh ids, re-randomizes the theme index (the palette in use when the backup
was made may differ from the current one) and resets images to empty.

Every failure is raised before any state is touched, so an import is never
partially applied.
"""

import json
import random
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from modules.notestore.core.exceptions import (
    EmptyInputError,
    MalformedDocumentError,
    NoNotesFoundError,
    NoValidNotesError,
)
from modules.notestore.core.logging import get_logger
from modules.notestore.core.utils import new_id, utc_now
from modules.notestore.models.note import (
    Note,
    NoteType,
    build_note,
    coerce_content,
)
from modules.notestore.schemas.backup import BackupDocument, BackupNote

logger = get_logger(__name__)

_DATETIME = TypeAdapter(datetime)


class BackupCodec:
    """Export and import of backup documents."""

    def __init__(self, palette_size: int = 10, rng: random.Random | None = None) -> None:
        if palette_size <= 0:
            raise ValueError("palette_size must be positive")
        self.palette_size = palette_size
        self._rng = rng or random.Random()

    # =========================================================================
    # Export
    # =========================================================================

    def export(self, notes: Sequence[Note]) -> BackupDocument:
        """
        Build a version 1 backup document.

        Raises:
            EmptyInputError: If there are no notes to export
        """
        if not notes:
            raise EmptyInputError()

        entries = [
            BackupNote(
                id=note.id,
                title=note.title,
                content=note.content if isinstance(note.content, str) else list(note.content),
                date=note.date,
                is_locked=note.is_private,
                type=NoteType(note.type),
                theme_index=note.theme_index,
                is_favorite=note.is_favorite,
            )
            for note in notes
        ]
        document = BackupDocument(note_count=len(entries), notes=entries)
        logger.info("Backup document prepared", extra={"note_count": document.note_count})
        return document

    @staticmethod
    def dumps(document: BackupDocument) -> str:
        """Render a document as indented JSON."""
        return json.dumps(document.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False)

    # =========================================================================
    # Import
    # =========================================================================

    def import_notes(self, raw: BackupDocument | str | bytes | dict | list) -> list[Note]:
        """
        Parse, validate and normalize a backup into importable notes.

        Accepts a BackupDocument, ``{"notes": [...]}`` documents and legacy
        bare arrays, as JSON text or already parsed.

        Raises:
            MalformedDocumentError: If the input is not a parseable backup
            NoNotesFoundError: If the notes array is empty
            NoValidNotesError: If every entry was rejected
        """
        entries = self._resolve_entries(self._parse(raw))
        if not entries:
            raise NoNotesFoundError()

        notes: list[Note] = []
        for position, entry in enumerate(entries):
            if not self._is_note_like(entry):
                logger.debug("Backup entry rejected", extra={"position": position})
                continue
            note = self._normalize(entry, position)
            if note is not None:
                notes.append(note)

        if not notes:
            raise NoValidNotesError()

        logger.info(
            "Backup parsed",
            extra={"entries": len(entries), "importable": len(notes)},
        )
        return notes

    @staticmethod
    def _parse(raw: BackupDocument | str | bytes | dict | list) -> Any:
        if isinstance(raw, BackupDocument):
            return raw.model_dump(mode="json", by_alias=True)
        if isinstance(raw, (dict, list)):
            return raw
        if not isinstance(raw, (str, bytes)):
            raise MalformedDocumentError()
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedDocumentError("The selected file is not UTF-8 text.") from e
        if not raw or not raw.strip():
            raise MalformedDocumentError("The selected file is empty or corrupted.")
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedDocumentError() from e

    @staticmethod
    def _resolve_entries(parsed: Any) -> list[Any]:
        if isinstance(parsed, dict) and isinstance(parsed.get("notes"), list):
            return parsed["notes"]
        if isinstance(parsed, list):
            return parsed
        raise MalformedDocumentError("Invalid backup file format. Expected notes array.")

    @staticmethod
    def _is_note_like(entry: Any) -> bool:
        return isinstance(entry, dict) and bool(
            entry.get("id") or entry.get("title") or entry.get("content")
        )

    def _normalize(self, entry: dict[str, Any], position: int) -> Note | None:
        try:
            note_type = NoteType(entry.get("type") or NoteType.TEXT)
        except ValueError:
            note_type = NoteType.TEXT

        title = entry.get("title") or ""
        fields = {
            "id": new_id(),
            "title": title if isinstance(title, str) else str(title),
            "type": note_type.value,
            "content": coerce_content(note_type, entry.get("content") or ""),
            "date": self._parse_date(entry.get("date")),
            "is_private": bool(entry.get("isLocked") or entry.get("isPrivate") or False),
            "is_favorite": bool(entry.get("isFavorite") or False),
            "theme_index": self._rng.randrange(self.palette_size),
            "images": [],
        }
        try:
            return build_note(fields)
        except PydanticValidationError as e:
            logger.debug(
                "Backup entry could not be normalized",
                extra={"position": position, "error": str(e)},
            )
            return None

    @staticmethod
    def _parse_date(value: Any) -> datetime:
        if value is None or value == "":
            return utc_now()
        try:
            return _DATETIME.validate_python(value)
        except PydanticValidationError:
            return utc_now()
