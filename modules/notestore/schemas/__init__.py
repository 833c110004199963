# Pydantic schemas package
from modules.notestore.schemas.backup import (
    BackupDocument,
    BackupMetadata,
    BackupNote,
)
from modules.notestore.schemas.note import NoteCreate, NotePatch

__all__ = [
    "BackupDocument",
    "BackupMetadata",
    "BackupNote",
    "NoteCreate",
    "NotePatch",
]
