"""
Unit Test Fixtures.

Fixtures for unit tests. Stores are in-memory and retries are immediate,
so failure injection through unittest.mock never sleeps.
"""

from collections.abc import Callable
from typing import Any

import pytest

from modules.notestore.core.config_schema import RetrySchema
from modules.notestore.models.note import ChecklistItem, ChecklistNote, TextNote
from modules.notestore.repositories.note import NoteRepository
from modules.notestore.storage.memory import MemoryKeyValueStore


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    """Empty in-memory key-value store."""
    return MemoryKeyValueStore()


@pytest.fixture
def fast_retry() -> RetrySchema:
    """Two attempts with no wait in between."""
    return RetrySchema(max_attempts=2, wait_min=0, wait_max=0)


# =============================================================================
# Repository Fixtures
# =============================================================================


@pytest.fixture
async def repository(memory_store: MemoryKeyValueStore, fast_retry: RetrySchema) -> NoteRepository:
    """
    Repository opened on an empty memory store, no PIN set.

    Usage:
        async def test_create(repository: NoteRepository):
            note = await repository.create(NoteCreate(title="Hello"))
    """
    return await NoteRepository.open(memory_store, retry=fast_retry)


@pytest.fixture
async def repository_with_pin(repository: NoteRepository) -> NoteRepository:
    """Repository with the PIN 1234 already set."""
    await repository.set_pin("1234")
    return repository


# =============================================================================
# Note Factories
# =============================================================================


@pytest.fixture
def make_text_note() -> Callable[..., TextNote]:
    """Factory for text notes with overridable fields."""

    def _make(**overrides: Any) -> TextNote:
        fields = {"title": "Note", "content": "Body"}
        fields.update(overrides)
        return TextNote(**fields)

    return _make


@pytest.fixture
def make_checklist_note() -> Callable[..., ChecklistNote]:
    """Factory for checklist notes; ``items`` is a list of item texts."""

    def _make(items: tuple[str, ...] = ("milk", "eggs"), **overrides: Any) -> ChecklistNote:
        fields = {
            "title": "List",
            "content": tuple(ChecklistItem(text=text) for text in items),
        }
        fields.update(overrides)
        return ChecklistNote(**fields)

    return _make
