"""
Backup Schemas.

Pydantic schemas for the portable backup document and the metadata
recorded after a backup file is written.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from modules.notestore.models.note import ChecklistItem, NoteType

BACKUP_VERSION = 1


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BackupNote(_CamelModel):
    """A note as written to a backup. Image references are not included."""

    id: str
    title: str
    content: str | list[ChecklistItem]
    date: datetime
    is_locked: bool
    type: NoteType
    theme_index: int
    is_favorite: bool


class BackupDocument(_CamelModel):
    """Versioned backup document."""

    note_count: int
    version: int = BACKUP_VERSION
    notes: list[BackupNote] = Field(default_factory=list)


class BackupMetadata(_CamelModel):
    """Record of the most recent backup file written."""

    last_backup: datetime
    filename: str
    note_count: int
    backup_path: str
