"""
Retention Sweeper.

Prunes trashed notes whose grace period has run out. This is the only path
that deletes data without an explicit user action. It runs once when the
repository is opened and can be run again on demand.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from modules.notestore.core.logging import get_logger
from modules.notestore.core.utils import utc_now
from modules.notestore.models.note import Note

logger = get_logger(__name__)

DEFAULT_RETENTION = timedelta(days=30)


@dataclass(frozen=True)
class SweepResult:
    """Outcome of a sweep: what stays in the trash and what was dropped."""

    kept: list[Note] = field(default_factory=list)
    purged: list[Note] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.purged)


class RetentionSweeper:
    """
    Drops trashed notes deleted more than ``retention`` ago.

    A note whose deletedAt is exactly at the cutoff is purged. A trashed note
    with no deletedAt cannot be aged and is purged as well.
    """

    def __init__(
        self,
        retention: timedelta = DEFAULT_RETENTION,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if retention <= timedelta(0):
            raise ValueError("retention must be positive")
        self.retention = retention
        self._clock = clock

    def cutoff(self, now: datetime | None = None) -> datetime:
        """Oldest deletedAt that is still retained (exclusive)."""
        return (now or self._clock()) - self.retention

    def is_expired(self, note: Note, cutoff: datetime) -> bool:
        return note.deleted_at is None or note.deleted_at <= cutoff

    def sweep(self, trashed: Iterable[Note], now: datetime | None = None) -> SweepResult:
        """
        Partition the trashed collection into kept and purged notes.

        Args:
            trashed: Trashed notes in collection order
            now: Reference time, defaults to the sweeper's clock

        Returns:
            SweepResult with order preserved in both lists
        """
        cutoff = self.cutoff(now)
        kept: list[Note] = []
        purged: list[Note] = []
        for note in trashed:
            (purged if self.is_expired(note, cutoff) else kept).append(note)

        if purged:
            logger.info(
                "Expired notes swept from trash",
                extra={
                    "purged": len(purged),
                    "kept": len(kept),
                    "note_ids": [note.id for note in purged],
                },
            )
        return SweepResult(kept=kept, purged=purged)
