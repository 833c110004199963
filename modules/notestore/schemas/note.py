"""
Note Schemas.

Pydantic schemas for the drafts and patches the editor hands to the store.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from modules.notestore.models.note import ChecklistItem, NoteType


class NoteCreate(BaseModel):
    """Schema for a new note as saved from the editor."""

    title: str = Field(default="", description="Note title")
    content: str | list[ChecklistItem] = Field(
        default="",
        description="Text for text notes, items for checklist notes",
    )
    type: NoteType = Field(default=NoteType.TEXT, description="Content kind")
    is_private: bool = Field(default=False, description="Hide behind the PIN")
    theme_index: int = Field(default=0, description="Palette index")
    images: list[str] = Field(default_factory=list, description="Image references")

    model_config = ConfigDict(populate_by_name=True)

    def has_body(self) -> bool:
        """Whether the draft carries anything worth saving."""
        if self.title.strip():
            return True
        if isinstance(self.content, str):
            return bool(self.content.strip())
        return any(item.text.strip() for item in self.content)


class NotePatch(BaseModel):
    """Schema for editing an existing note. Unset fields are left alone."""

    title: str | None = Field(default=None, description="Note title")
    content: str | list[ChecklistItem] | None = Field(
        default=None,
        description="Replacement content",
    )
    type: NoteType | None = Field(default=None, description="Content kind")
    is_private: bool | None = Field(default=None, description="Hide behind the PIN")
    theme_index: int | None = Field(default=None, description="Palette index")
    images: list[str] | None = Field(default=None, description="Image references")

    model_config = ConfigDict(populate_by_name=True)

    def changes(self) -> dict[str, Any]:
        """Fields explicitly set on the patch."""
        return self.model_dump(mode="json", exclude_unset=True)
