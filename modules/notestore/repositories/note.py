"""
Note Repository.

Owns the active collection, the trashed collection and the app PIN, and is
the only writer of their records in the key-value store.

Every mutation is persisted before it is committed to memory. If a write
still fails after retries, PersistenceError is raised and the in-memory
collections are left exactly as they were, so memory never runs ahead of
what is on disk.
"""

import hmac
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from modules.notestore.core.config_schema import RetrySchema, StorageKeysSchema
from modules.notestore.core.exceptions import (
    PersistenceError,
    PrivacyViolationError,
    StorageError,
    ValidationError,
)
from modules.notestore.core.logging import get_logger, log_with_source
from modules.notestore.core.resilience import store_retrying
from modules.notestore.core.utils import new_id, utc_now
from modules.notestore.models.note import (
    ChecklistNote,
    Note,
    NoteType,
    NoteView,
    build_note,
    coerce_content,
    decode_notes,
    default_content,
    encode_notes,
)
from modules.notestore.schemas.note import NoteCreate, NotePatch
from modules.notestore.services.merge import merge_notes
from modules.notestore.services.retention import RetentionSweeper

logger = get_logger(__name__)


class NoteRepository:
    """
    Repository for the note collections.

    Construct one per application session with ``await NoteRepository.open(store)``;
    opening loads the persisted records and sweeps expired trash.
    """

    def __init__(
        self,
        store: Any,
        keys: StorageKeysSchema | None = None,
        sweeper: RetentionSweeper | None = None,
        retry: RetrySchema | None = None,
        pin_length: int = 4,
    ) -> None:
        self.store = store
        self.keys = keys or StorageKeysSchema()
        self.sweeper = sweeper or RetentionSweeper()
        self.retry = retry or RetrySchema()
        self.pin_length = pin_length
        self._active: list[Note] = []
        self._trashed: list[Note] = []
        self._pin: str | None = None

    @classmethod
    async def open(cls, store: Any, **kwargs: Any) -> "NoteRepository":
        """Create a repository and load its persisted state."""
        repository = cls(store, **kwargs)
        await repository.load()
        return repository

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def active(self) -> tuple[Note, ...]:
        return tuple(self._active)

    @property
    def trashed(self) -> tuple[Note, ...]:
        return tuple(self._trashed)

    @property
    def has_pin(self) -> bool:
        return self._pin is not None

    def verify_pin(self, pin: str) -> bool:
        """Compare a candidate PIN against the stored one."""
        if self._pin is None:
            return False
        return hmac.compare_digest(pin.encode("utf-8"), self._pin.encode("utf-8"))

    def get(self, note_id: str) -> Note | None:
        """Look up an active note by id."""
        return self._find(self._active, note_id)[1]

    def get_trashed(self, note_id: str) -> Note | None:
        """Look up a trashed note by id."""
        return self._find(self._trashed, note_id)[1]

    def list_notes(self, view: NoteView | str = NoteView.ALL, query: str = "") -> tuple[Note, ...]:
        """
        Produce a read-only, filtered view of one collection.

        Args:
            view: all, favorites or trash
            query: Case-insensitive substring matched against the title and,
                for text notes, the content

        Returns:
            Notes in collection order (most recent first)
        """
        view = NoteView(view)
        notes: Iterable[Note] = self._trashed if view is NoteView.TRASH else self._active

        if view is NoteView.FAVORITES:
            notes = [note for note in notes if note.is_favorite]

        if query.strip():
            needle = query.lower()
            notes = [note for note in notes if note.matches(needle)]

        return tuple(notes)

    # =========================================================================
    # Loading
    # =========================================================================

    async def load(self) -> None:
        """
        Load the three records and prune expired trash.

        A record whose stored form differs from the normalized collection
        (stray trash stamps, repaired checklist ids, expired trash) is
        rewritten so memory and storage agree from the start.

        Raises:
            PersistenceError: If a record cannot be read or decoded
        """
        raw_active = await self._read(self.keys.active_notes)
        raw_trashed = await self._read(self.keys.trashed_notes)
        pin = await self._read(self.keys.pin)

        active, trashed = self._reconcile(
            self._decode(self.keys.active_notes, raw_active),
            self._decode(self.keys.trashed_notes, raw_trashed),
        )
        result = self.sweeper.sweep(trashed)

        for key, raw, notes in (
            (self.keys.trashed_notes, raw_trashed, result.kept),
            (self.keys.active_notes, raw_active, active),
        ):
            encoded = encode_notes(notes)
            if raw is not None and raw != encoded:
                await self._write(key, encoded)

        self._active = active
        self._trashed = result.kept
        self._pin = pin or None

        if result.changed:
            log_with_source(logger, "internal", "info", "Trash swept", purged=len(result.purged))
        logger.info(
            "Notes loaded",
            extra={
                "active": len(self._active),
                "trashed": len(self._trashed),
                "pin_set": self.has_pin,
            },
        )

    def _reconcile(
        self, active: list[Note], trashed: list[Note],
    ) -> tuple[list[Note], list[Note]]:
        """Enforce that an id lives in exactly one collection."""
        active = [
            note.model_copy(update={"deleted_at": None}) if note.deleted_at else note
            for note in active
        ]
        active_ids = {note.id for note in active}
        kept = [note for note in trashed if note.id not in active_ids]
        if len(kept) != len(trashed):
            logger.warning(
                "Notes found in both collections; keeping the active copy",
                extra={"note_ids": [n.id for n in trashed if n.id in active_ids]},
            )
        return active, kept

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create(self, data: NoteCreate) -> Note:
        """
        Create a note and prepend it to the active collection.

        Raises:
            PrivacyViolationError: If the note is private and no PIN is set
            ValidationError: If the draft has neither a title nor content
            PersistenceError: If the collection could not be saved
        """
        if data.is_private and not self.has_pin:
            raise PrivacyViolationError()
        if not data.has_body():
            raise ValidationError(
                "A note needs a title or some content",
                details={"fields": ["title", "content"]},
            )

        fields = data.model_dump(mode="json")
        fields["content"] = coerce_content(data.type, fields["content"])
        note = self._build({
            **fields,
            "id": new_id(),
            "date": utc_now(),
            "is_favorite": False,
        })

        await self._persist(active=[note, *self._active])
        logger.info("Note created", extra={"note_id": note.id, "type": note.type})
        return note

    async def update(self, note_id: str, patch: NotePatch) -> Note | None:
        """
        Merge patch fields into a note and refresh its date.

        Switching the type without new content reinitialises the content.

        Returns:
            The updated note, or None if no active note has this id

        Raises:
            PrivacyViolationError: If the result is private and no PIN is set
        """
        index, note = self._find(self._active, note_id)
        if note is None:
            return None

        changes = patch.changes()
        merged = {**note.model_dump(mode="json"), **changes}
        if merged["is_private"] and not self.has_pin:
            raise PrivacyViolationError()

        note_type = NoteType(merged["type"])
        if note_type != note.type and "content" not in changes:
            merged["content"] = default_content(note_type)
        merged["content"] = coerce_content(note_type, merged["content"])
        merged["date"] = utc_now()

        updated = self._build(merged)
        await self._replace_active(index, updated)
        logger.info("Note updated", extra={"note_id": note_id, "fields": sorted(changes)})
        return updated

    async def toggle_favorite(self, note_id: str) -> Note | None:
        index, note = self._find(self._active, note_id)
        if note is None:
            return None
        updated = note.model_copy(update={"is_favorite": not note.is_favorite})
        await self._replace_active(index, updated)
        logger.info("Favorite toggled", extra={"note_id": note_id, "is_favorite": updated.is_favorite})
        return updated

    async def toggle_private(self, note_id: str) -> Note | None:
        """
        Flip a note's private flag.

        Raises:
            PrivacyViolationError: If the note would become private with no PIN set
        """
        index, note = self._find(self._active, note_id)
        if note is None:
            return None
        if not note.is_private and not self.has_pin:
            raise PrivacyViolationError()
        updated = note.model_copy(update={"is_private": not note.is_private})
        await self._replace_active(index, updated)
        logger.info("Privacy toggled", extra={"note_id": note_id, "is_private": updated.is_private})
        return updated

    async def toggle_checklist_item(self, note_id: str, item_id: str) -> Note | None:
        """
        Flip one checklist item and refresh the note's date.

        No-op (None) for text notes, unknown notes and unknown items.
        """
        index, note = self._find(self._active, note_id)
        if not isinstance(note, ChecklistNote):
            return None
        updated = note.with_item_toggled(item_id)
        if updated is None:
            return None
        await self._replace_active(index, updated)
        logger.debug("Checklist item toggled", extra={"note_id": note_id, "item_id": item_id})
        return updated

    async def move_to_trash(self, note_id: str) -> Note | None:
        """Move an active note to the front of the trash, stamping deletedAt."""
        index, note = self._find(self._active, note_id)
        if note is None:
            return None
        trashed = note.model_copy(update={"deleted_at": utc_now()})
        active = self._active[:index] + self._active[index + 1:]
        await self._persist(active=active, trashed=[trashed, *self._trashed])
        logger.info("Note moved to trash", extra={"note_id": note_id})
        return trashed

    async def restore(self, note_id: str) -> Note | None:
        """Move a trashed note back to the front of the active collection."""
        index, note = self._find(self._trashed, note_id)
        if note is None:
            return None
        restored = note.model_copy(update={"deleted_at": None})
        trashed = self._trashed[:index] + self._trashed[index + 1:]
        await self._persist(active=[restored, *self._active], trashed=trashed)
        logger.info("Note restored", extra={"note_id": note_id})
        return restored

    async def purge(self, note_id: str) -> Note | None:
        """Permanently delete a trashed note. Irreversible."""
        index, note = self._find(self._trashed, note_id)
        if note is None:
            return None
        await self._persist(trashed=self._trashed[:index] + self._trashed[index + 1:])
        logger.info("Note purged", extra={"note_id": note_id})
        return note

    async def add_imported(self, imported: list[Note]) -> list[Note]:
        """
        Merge imported notes ahead of the active collection and persist.

        Raises:
            PrivacyViolationError: If an imported note is private and no PIN is set
        """
        if any(note.is_private for note in imported) and not self.has_pin:
            raise PrivacyViolationError(
                "The backup contains locked notes. Set a PIN before importing it."
            )
        await self._persist(active=merge_notes(imported, self._active))
        logger.info(
            "Imported notes added",
            extra={"imported": len(imported), "active": len(self._active)},
        )
        return list(imported)

    async def sweep_trash(self) -> list[Note]:
        """Run the retention sweeper now. Writes only when something expired."""
        result = self.sweeper.sweep(self._trashed)
        if result.changed:
            await self._persist(trashed=result.kept)
            log_with_source(logger, "internal", "info", "Trash swept", purged=len(result.purged))
        return result.purged

    async def set_pin(self, pin: str) -> None:
        """
        Persist the app PIN.

        Raises:
            ValidationError: If the PIN is not exactly ``pin_length`` digits
        """
        if len(pin) != self.pin_length or not (pin.isascii() and pin.isdigit()):
            raise ValidationError(
                f"Your PIN must be exactly {self.pin_length} digits.",
                details={"pin": "invalid format"},
            )
        await self._write(self.keys.pin, pin)
        self._pin = pin
        logger.info("PIN set")

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _find(collection: list[Note], note_id: str) -> tuple[int, Note | None]:
        for index, note in enumerate(collection):
            if note.id == note_id:
                return index, note
        return -1, None

    @staticmethod
    def _build(fields: dict[str, Any]) -> Note:
        try:
            return build_note(fields)
        except PydanticValidationError as e:
            raise ValidationError(
                "Note fields are invalid",
                details={"errors": e.errors(include_url=False)},
            ) from e

    async def _replace_active(self, index: int, note: Note) -> None:
        active = list(self._active)
        active[index] = note
        await self._persist(active=active)

    async def _read(self, key: str) -> str | None:
        try:
            async for attempt in store_retrying(**self.retry.model_dump()):
                with attempt:
                    return await self.store.get(key)
        except StorageError as e:
            logger.error("Failed to read record", extra={"key": key, "error": str(e)})
            raise PersistenceError(f"Could not read {key}", key=key) from e
        return None

    @staticmethod
    def _decode(key: str, raw: str | None) -> list[Note]:
        if raw is None:
            return []
        try:
            return decode_notes(raw)
        except PydanticValidationError as e:
            logger.error("Stored notes could not be decoded", extra={"key": key, "error": str(e)})
            raise PersistenceError(f"Stored record {key} is corrupted", key=key) from e

    async def _write(self, key: str, value: str) -> None:
        try:
            async for attempt in store_retrying(**self.retry.model_dump()):
                with attempt:
                    await self.store.set(key, value)
        except StorageError as e:
            logger.error("Failed to persist record", extra={"key": key, "error": str(e)})
            raise PersistenceError(f"Could not persist {key}", key=key) from e

    async def _persist(
        self,
        active: list[Note] | None = None,
        trashed: list[Note] | None = None,
    ) -> None:
        """
        Write the given collections, then commit them to memory.

        When two records are written and the second fails, the first is
        rewritten with its previous contents before the error is raised.
        """
        writes: list[tuple[str, str, str]] = []
        if trashed is not None:
            writes.append((self.keys.trashed_notes, encode_notes(trashed), encode_notes(self._trashed)))
        if active is not None:
            writes.append((self.keys.active_notes, encode_notes(active), encode_notes(self._active)))

        written: list[tuple[str, str]] = []
        for key, value, previous in writes:
            try:
                await self._write(key, value)
            except PersistenceError:
                await self._rollback(written)
                raise
            written.append((key, previous))

        if active is not None:
            self._active = active
        if trashed is not None:
            self._trashed = trashed

    async def _rollback(self, written: list[tuple[str, str]]) -> None:
        for key, previous in reversed(written):
            try:
                await self._write(key, previous)
            except PersistenceError:
                logger.critical(
                    "Rollback failed; stored records may disagree",
                    extra={"key": key},
                )
