"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in application code.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema  → application.yaml
    LoggingSchema      → logging.yaml
    StorageSchema      → storage.yaml
    NotesSchema        → notes.yaml
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: str
    format: str
    handlers: HandlersSchema


# =============================================================================
# storage.yaml
# =============================================================================


class FileStoreSchema(_StrictBase):
    directory: str


class RedisStoreSchema(_StrictBase):
    host: str
    port: int
    db: int
    fail_max: int = 5
    timeout_duration: int = 30


class StorageKeysSchema(_StrictBase):
    active_notes: str = "notes:active"
    trashed_notes: str = "notes:trash"
    pin: str = "notes:pin"
    backup_metadata: str = "notes:backup_metadata"


class RetrySchema(_StrictBase):
    max_attempts: int = Field(default=3, ge=1)
    wait_min: float = Field(default=0.1, ge=0)
    wait_max: float = Field(default=2.0, ge=0)


class StorageSchema(_StrictBase):
    backend: Literal["memory", "file", "redis"]
    file: FileStoreSchema
    redis: RedisStoreSchema
    keys: StorageKeysSchema = Field(default_factory=StorageKeysSchema)
    retry: RetrySchema = Field(default_factory=RetrySchema)


# =============================================================================
# notes.yaml
# =============================================================================


class TrashSchema(_StrictBase):
    retention_days: int = Field(default=30, ge=1)


class ThemeSchema(_StrictBase):
    palette_size: int = Field(default=10, ge=1)


class PinSchema(_StrictBase):
    length: int = Field(default=4, ge=1)


class BackupSchema(_StrictBase):
    directory: str
    filename_prefix: str = "notes_backup"


class NotesSchema(_StrictBase):
    trash: TrashSchema = Field(default_factory=TrashSchema)
    theme: ThemeSchema = Field(default_factory=ThemeSchema)
    pin: PinSchema = Field(default_factory=PinSchema)
    backup: BackupSchema
