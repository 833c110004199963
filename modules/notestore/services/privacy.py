"""
Privacy Gate.

PIN-checking state machine that decides whether a private note may be shown
and routes actions that need a PIN through the PIN-set flow.

States:
    Unlocked            - idle; nothing pending
    Locked(note_id)     - a private note is waiting for PIN entry
    SettingPin(reason)  - no PIN exists yet; the originating action waits

The gate never holds note content. It keeps the id of the note being
unlocked and, while setting a PIN, a continuation that resumes the action
that asked for it.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any

from modules.notestore.core.exceptions import ValidationError
from modules.notestore.core.logging import get_logger
from modules.notestore.models.note import Note
from modules.notestore.repositories.note import NoteRepository

logger = get_logger(__name__)

Resume = Callable[[], Awaitable[Any]]


class PinReason(str, Enum):
    """Action that triggered the PIN-set flow."""

    CREATE = "create"
    EDIT = "edit"
    OPEN = "open"
    TOGGLE_PRIVATE = "toggle_private"
    IMPORT = "import"


class GateOutcome(str, Enum):
    GRANTED = "granted"
    LOCKED = "locked"
    PIN_REQUIRED = "pin_required"
    PIN_SET = "pin_set"
    INCORRECT_PIN = "incorrect_pin"
    INVALID_PIN = "invalid_pin"
    PIN_MISMATCH = "pin_mismatch"
    CANCELLED = "cancelled"
    IGNORED = "ignored"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Unlocked:
    """Idle state."""


@dataclass(frozen=True)
class Locked:
    note_id: str


@dataclass(frozen=True)
class SettingPin:
    reason: PinReason
    note_id: str | None = None
    resume: Resume | None = None


GateState = Unlocked | Locked | SettingPin


@dataclass(frozen=True)
class GateResult:
    """What the caller should do next, with a message for the user."""

    outcome: GateOutcome
    note_id: str | None = None
    value: Any = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome in (GateOutcome.GRANTED, GateOutcome.PIN_SET)


class PrivacyGate:
    """
    Gatekeeper in front of the repository's private notes.

    PIN entry has no lockout or backoff: an incorrect PIN simply leaves the
    gate locked for another attempt.
    """

    def __init__(self, repository: NoteRepository) -> None:
        self.repository = repository
        self.state: GateState = Unlocked()

    def open_note(self, note: Note) -> GateResult:
        """Request to view a note."""
        if not note.is_private:
            self.state = Unlocked()
            return GateResult(GateOutcome.GRANTED, note_id=note.id)

        if not self.repository.has_pin:
            return self.require_pin(
                PinReason.OPEN, resume=partial(self._reveal, note.id), note_id=note.id,
            )

        self.state = Locked(note.id)
        logger.debug("Private note locked", extra={"note_id": note.id})
        return GateResult(
            GateOutcome.LOCKED,
            note_id=note.id,
            message="Please enter your PIN to continue.",
        )

    async def _reveal(self, note_id: str) -> Note | None:
        # Setting the first PIN from a private note opens that note
        return self.repository.get(note_id)

    def require_pin(
        self,
        reason: PinReason,
        resume: Resume | None = None,
        note_id: str | None = None,
    ) -> GateResult:
        """Enter the PIN-set flow on behalf of an action that needs a PIN."""
        self.state = SettingPin(reason=reason, note_id=note_id, resume=resume)
        logger.info("PIN required", extra={"reason": reason.value, "note_id": note_id})
        return GateResult(
            GateOutcome.PIN_REQUIRED,
            note_id=note_id,
            message="Set a 4-digit PIN to protect your locked notes.",
        )

    def submit_pin(self, pin: str) -> GateResult:
        """Check a PIN entered for the note awaiting unlock."""
        if not isinstance(self.state, Locked):
            return GateResult(GateOutcome.IGNORED)

        note_id = self.state.note_id
        if self.repository.verify_pin(pin):
            self.state = Unlocked()
            logger.info("Private note unlocked", extra={"note_id": note_id})
            return GateResult(GateOutcome.GRANTED, note_id=note_id)

        logger.warning("Incorrect PIN entered", extra={"note_id": note_id})
        return GateResult(
            GateOutcome.INCORRECT_PIN,
            note_id=note_id,
            message="The PIN you entered is incorrect. Please try again.",
        )

    async def set_pin(self, pin: str, confirmation: str) -> GateResult:
        """
        Complete the PIN-set flow and resume the action that started it.

        The PIN must be exactly the configured number of digits and match
        its confirmation; otherwise the gate stays in SettingPin.

        Raises:
            PersistenceError: If the PIN could not be stored
        """
        if not isinstance(self.state, SettingPin):
            return GateResult(GateOutcome.IGNORED)

        if pin != confirmation:
            return GateResult(
                GateOutcome.PIN_MISMATCH,
                message="The PINs you entered do not match.",
            )

        try:
            await self.repository.set_pin(pin)
        except ValidationError as e:
            return GateResult(GateOutcome.INVALID_PIN, message=e.message)

        pending = self.state
        self.state = Unlocked()

        value = None
        if pending.resume is not None:
            value = await pending.resume()

        return GateResult(
            GateOutcome.PIN_SET,
            note_id=pending.note_id,
            value=value,
            message="Your PIN has been set successfully.",
        )

    def cancel(self) -> GateResult:
        """Abandon whatever is pending without side effects."""
        self.state = Unlocked()
        return GateResult(GateOutcome.CANCELLED)
