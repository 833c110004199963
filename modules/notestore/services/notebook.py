"""
Notebook Service.

One Notebook is constructed per application session. It wires the key-value
store, the repository, the privacy gate, the backup codec and backup files
together and is the API the UI layer calls.

Actions that may need a PIN (saving a private note, opening one, making one
private, importing locked notes) return a GateResult. When no PIN is set the
gate moves to SettingPin and the action resumes once ``set_pin`` succeeds.
"""

from datetime import timedelta
from functools import partial
from pathlib import Path

from modules.notestore.core.config import AppConfig, get_app_config, resolve_path
from modules.notestore.models.note import Note, NoteView, clamp_theme_index
from modules.notestore.repositories.note import NoteRepository
from modules.notestore.schemas.backup import BackupDocument, BackupMetadata
from modules.notestore.schemas.note import NoteCreate, NotePatch
from modules.notestore.services.backup import BackupCodec
from modules.notestore.services.backup_files import BackupFileService
from modules.notestore.services.base import BaseService
from modules.notestore.services.privacy import (
    GateOutcome,
    GateResult,
    PinReason,
    PrivacyGate,
)
from modules.notestore.services.retention import RetentionSweeper
from modules.notestore.storage.base import KeyValueStore
from modules.notestore.storage.factory import create_store


class Notebook(BaseService):
    """
    Application-session facade over the note store.

    Views never keep their own copy of a note: they read it back by id with
    ``get`` after every mutation.
    """

    def __init__(
        self,
        repository: NoteRepository,
        codec: BackupCodec | None = None,
        files: BackupFileService | None = None,
        backup_directory: str | Path = "backups",
    ) -> None:
        super().__init__(repository)
        self.gate = PrivacyGate(repository)
        self.codec = codec or BackupCodec()
        self.files = files or BackupFileService(repository)
        self.backup_directory = Path(backup_directory)

    @classmethod
    async def open(cls, store: KeyValueStore, **kwargs) -> "Notebook":
        """Open a notebook on ``store`` with default settings."""
        repository = await NoteRepository.open(store)
        return cls(repository, **kwargs)

    @classmethod
    async def from_config(cls, config: AppConfig | None = None) -> "Notebook":
        """Open a notebook using config/settings/storage.yaml and notes.yaml."""
        config = config or get_app_config()
        notes = config.notes
        repository = await NoteRepository.open(
            create_store(config.storage),
            keys=config.storage.keys,
            retry=config.storage.retry,
            sweeper=RetentionSweeper(timedelta(days=notes.trash.retention_days)),
            pin_length=notes.pin.length,
        )
        return cls(
            repository,
            codec=BackupCodec(palette_size=notes.theme.palette_size),
            files=BackupFileService(repository, filename_prefix=notes.backup.filename_prefix),
            backup_directory=resolve_path(notes.backup.directory),
        )

    async def close(self) -> None:
        await self.repository.store.close()

    # =========================================================================
    # Reading
    # =========================================================================

    def get(self, note_id: str) -> Note | None:
        return self.repository.get(note_id)

    def list_notes(self, view: NoteView | str = NoteView.ALL, query: str = "") -> tuple[Note, ...]:
        return self.repository.list_notes(view, query)

    def palette_index(self, note: Note) -> int:
        """Theme index clamped into the configured palette."""
        return clamp_theme_index(note.theme_index, self.codec.palette_size)

    def open_note(self, note_id: str) -> GateResult:
        """Ask to view a note; private notes go through the gate."""
        note = self.repository.get(note_id)
        if note is None:
            return GateResult(GateOutcome.NOT_FOUND, note_id=note_id)
        result = self.gate.open_note(note)
        if result.outcome is GateOutcome.GRANTED:
            return GateResult(GateOutcome.GRANTED, note_id=note.id, value=note)
        return result

    def submit_pin(self, pin: str) -> GateResult:
        """Enter the PIN for the note awaiting unlock."""
        result = self.gate.submit_pin(pin)
        if result.outcome is GateOutcome.GRANTED and result.note_id is not None:
            return GateResult(
                GateOutcome.GRANTED,
                note_id=result.note_id,
                value=self.repository.get(result.note_id),
            )
        return result

    async def set_pin(self, pin: str, confirmation: str) -> GateResult:
        return await self.gate.set_pin(pin, confirmation)

    def cancel_pin(self) -> GateResult:
        return self.gate.cancel()

    # =========================================================================
    # Editing
    # =========================================================================

    async def save_note(self, data: NoteCreate, note_id: str | None = None) -> GateResult:
        """
        Save the editor's draft as a new note, or over ``note_id``.

        Returns:
            GRANTED with the saved note, NOT_FOUND for an unknown id, or
            PIN_REQUIRED when the draft is private and no PIN exists yet
        """
        if note_id is None:
            action = partial(self.repository.create, data)
        else:
            action = partial(self.repository.update, note_id, NotePatch(**data.model_dump()))

        if data.is_private and not self.repository.has_pin:
            self._log_debug("Save deferred until a PIN is set", note_id=note_id)
            reason = PinReason.CREATE if note_id is None else PinReason.EDIT
            return self.gate.require_pin(reason, resume=action, note_id=note_id)

        note = await action()
        if note is None:
            return GateResult(GateOutcome.NOT_FOUND, note_id=note_id)
        return GateResult(GateOutcome.GRANTED, note_id=note.id, value=note)

    async def edit_note(self, note_id: str, patch: NotePatch) -> GateResult:
        """Apply a partial edit to an existing note."""
        action = partial(self.repository.update, note_id, patch)
        if patch.is_private and not self.repository.has_pin:
            return self.gate.require_pin(PinReason.EDIT, resume=action, note_id=note_id)

        note = await action()
        if note is None:
            return GateResult(GateOutcome.NOT_FOUND, note_id=note_id)
        return GateResult(GateOutcome.GRANTED, note_id=note.id, value=note)

    async def toggle_private(self, note_id: str) -> GateResult:
        note = self.repository.get(note_id)
        if note is None:
            return GateResult(GateOutcome.NOT_FOUND, note_id=note_id)

        action = partial(self.repository.toggle_private, note_id)
        if not note.is_private and not self.repository.has_pin:
            return self.gate.require_pin(PinReason.TOGGLE_PRIVATE, resume=action, note_id=note_id)

        updated = await action()
        return GateResult(GateOutcome.GRANTED, note_id=note_id, value=updated)

    async def toggle_favorite(self, note_id: str) -> Note | None:
        return await self.repository.toggle_favorite(note_id)

    async def toggle_checklist_item(self, note_id: str, item_id: str) -> Note | None:
        return await self.repository.toggle_checklist_item(note_id, item_id)

    async def move_to_trash(self, note_id: str) -> Note | None:
        return await self.repository.move_to_trash(note_id)

    async def restore(self, note_id: str) -> Note | None:
        return await self.repository.restore(note_id)

    async def purge(self, note_id: str) -> Note | None:
        return await self.repository.purge(note_id)

    async def sweep_trash(self) -> list[Note]:
        return await self.repository.sweep_trash()

    # =========================================================================
    # Backups
    # =========================================================================

    def export_backup(self) -> BackupDocument:
        """
        Build a backup document of the active collection.

        Raises:
            EmptyInputError: If there are no notes
        """
        return self.codec.export(self.repository.active)

    async def write_backup(self, directory: str | Path | None = None) -> Path:
        """Export the active collection to a new backup file."""
        document = self.export_backup()
        return await self.files.write(document, directory or self.backup_directory)

    async def read_backup(self, path: str | Path) -> str:
        return await self.files.read(path)

    async def import_backup(self, raw: BackupDocument | str | bytes | dict | list) -> GateResult:
        """
        Import a backup document additively.

        Returns:
            GRANTED with the imported notes, or PIN_REQUIRED when the backup
            holds locked notes and no PIN exists yet

        Raises:
            BackupValidationError: If the document cannot be imported
        """
        notes = self.codec.import_notes(raw)
        action = partial(self.repository.add_imported, notes)

        if any(note.is_private for note in notes) and not self.repository.has_pin:
            self._log_debug("Import deferred until a PIN is set", notes=len(notes))
            return self.gate.require_pin(PinReason.IMPORT, resume=action)

        imported = await action()
        self._log_operation("Backup imported", notes=len(imported))
        return GateResult(GateOutcome.GRANTED, value=imported)

    async def import_backup_file(self, path: str | Path) -> GateResult:
        return await self.import_backup(await self.read_backup(path))

    async def last_backup(self) -> BackupMetadata | None:
        return await self.files.last_backup()
