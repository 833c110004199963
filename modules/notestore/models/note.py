"""
Note Model.

Domain model for notes. A note's content is a tagged variant selected by
``type``: a text note carries a string, a checklist note carries an ordered
list of checklist items. Both variants serialize to the same camelCase
record shape used by the persisted collections and by backups.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
)
from pydantic.alias_generators import to_camel

from modules.notestore.core.utils import ensure_utc, new_id, utc_now


class NoteType(str, Enum):
    """Kind of content a note holds."""

    TEXT = "text"
    CHECKLIST = "checklist"


class NoteView(str, Enum):
    """Collections a caller can list."""

    ALL = "all"
    FAVORITES = "favorites"
    TRASH = "trash"


class _Record(BaseModel):
    """Base for persisted records: camelCase on the wire, immutable in memory."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ChecklistItem(_Record):
    """A single line of a checklist note."""

    id: str = Field(default_factory=new_id)
    text: str = ""
    is_checked: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Older clients used millisecond timestamps as item ids
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class NoteBase(_Record):
    """Fields shared by both note variants."""

    id: str = Field(default_factory=new_id)
    title: str = ""
    date: datetime = Field(default_factory=utc_now)
    is_private: bool = False
    is_favorite: bool = False
    theme_index: int = 0
    images: tuple[str, ...] = ()
    deleted_at: datetime | None = None

    @field_validator("date", "deleted_at")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return ensure_utc(value)

    @field_validator("theme_index", mode="before")
    @classmethod
    def _clamp_theme_index(cls, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0
        return max(0, int(value))

    @property
    def is_trashed(self) -> bool:
        return self.deleted_at is not None


class TextNote(NoteBase):
    """A note whose content is free text."""

    type: Literal["text"] = "text"
    content: str = ""

    def matches(self, query: str) -> bool:
        return query in self.title.lower() or query in self.content.lower()

    def has_body(self) -> bool:
        return bool(self.content.strip())


class ChecklistNote(NoteBase):
    """A note whose content is an ordered list of checklist items."""

    type: Literal["checklist"] = "checklist"
    content: tuple[ChecklistItem, ...] = ()

    @field_validator("content")
    @classmethod
    def _unique_item_ids(cls, items: tuple[ChecklistItem, ...]) -> tuple[ChecklistItem, ...]:
        # Older clients minted item ids from the clock, so two items could share one
        seen: set[str] = set()
        unique = []
        for item in items:
            if item.id in seen:
                item = item.model_copy(update={"id": new_id()})
            seen.add(item.id)
            unique.append(item)
        return tuple(unique)

    def matches(self, query: str) -> bool:
        # Checklist item text is not searched
        return query in self.title.lower()

    def has_body(self) -> bool:
        return any(item.text.strip() for item in self.content)

    def find_item(self, item_id: str) -> ChecklistItem | None:
        for item in self.content:
            if item.id == item_id:
                return item
        return None

    def with_item_toggled(self, item_id: str) -> "ChecklistNote | None":
        """Return a copy with one item flipped and the date refreshed."""
        if self.find_item(item_id) is None:
            return None
        items = tuple(
            item.model_copy(update={"is_checked": not item.is_checked})
            if item.id == item_id
            else item
            for item in self.content
        )
        return self.model_copy(update={"content": items, "date": utc_now()})


Note = Annotated[Union[TextNote, ChecklistNote], Field(discriminator="type")]

NOTE_ADAPTER: TypeAdapter[Note] = TypeAdapter(Note)
NOTE_LIST_ADAPTER: TypeAdapter[list[Note]] = TypeAdapter(list[Note])


def default_content(note_type: NoteType) -> str | list[dict[str, Any]]:
    """Initial content for a freshly created or re-typed note."""
    if note_type == NoteType.CHECKLIST:
        return [ChecklistItem().model_dump()]
    return ""


def _coerce_item(item: Any) -> ChecklistItem | dict[str, Any] | None:
    """Shape one stored checklist entry; anything that is not a mapping is dropped."""
    if isinstance(item, ChecklistItem):
        return item
    if not isinstance(item, dict):
        return None
    text = item.get("text")
    fields: dict[str, Any] = {
        "text": "" if text is None else str(text),
        "is_checked": bool(item.get("isChecked", item.get("is_checked", False))),
    }
    item_id = item.get("id")
    if isinstance(item_id, (str, int)) and not isinstance(item_id, bool) and str(item_id):
        fields["id"] = item_id
    return fields


def coerce_content(note_type: NoteType, content: Any) -> str | list[Any]:
    """
    Shape content to match the note type.

    Checklist strings become one item per non-blank line and checklist
    entries are normalized item by item; for text notes, checklist lists
    become newline-joined text. Anything else falls back to the type's
    empty content.
    """
    if note_type == NoteType.CHECKLIST:
        if isinstance(content, (list, tuple)):
            items = (_coerce_item(item) for item in content)
            return [item for item in items if item is not None]
        if isinstance(content, str):
            return [
                ChecklistItem(text=line.strip()).model_dump()
                for line in content.splitlines()
                if line.strip()
            ]
        return []
    if isinstance(content, str):
        return content
    if isinstance(content, (list, tuple)):
        lines = []
        for item in content:
            if isinstance(item, ChecklistItem):
                lines.append(item.text)
            elif isinstance(item, dict):
                lines.append(str(item.get("text", "")))
        return "\n".join(lines)
    if content is None:
        return ""
    return str(content)


def clamp_theme_index(index: int, palette_size: int) -> int:
    """Clamp a stored theme index into the range of the palette in use."""
    if palette_size <= 0:
        raise ValueError("palette_size must be positive")
    return min(max(index, 0), palette_size - 1)


def build_note(data: dict[str, Any]) -> Note:
    """Validate a field mapping (snake_case or camelCase) into a note variant."""
    return NOTE_ADAPTER.validate_python(data)


def decode_notes(raw: str) -> list[Note]:
    """Decode a persisted JSON array of notes."""
    return NOTE_LIST_ADAPTER.validate_json(raw)


def encode_notes(notes: list[Note] | tuple[Note, ...]) -> str:
    """Encode notes as the persisted JSON array."""
    return NOTE_LIST_ADAPTER.dump_json(
        list(notes), by_alias=True, exclude_none=True
    ).decode("utf-8")
