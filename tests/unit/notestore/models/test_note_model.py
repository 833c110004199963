"""
Unit Tests for the Note Model.

Covers the tagged content variant, the camelCase record shape, field
normalisation and the content helpers used by the editor and importer.
"""

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from modules.notestore.models.note import (
    ChecklistItem,
    ChecklistNote,
    NoteType,
    TextNote,
    build_note,
    clamp_theme_index,
    coerce_content,
    decode_notes,
    default_content,
    encode_notes,
)
from modules.notestore.schemas.note import NoteCreate, NotePatch


class TestBuildNote:
    """Tests for selecting the variant from the type tag."""

    def test_text_note(self):
        note = build_note({"title": "Hello", "type": "text", "content": "world"})
        assert isinstance(note, TextNote)
        assert note.content == "world"

    def test_checklist_note_from_camel_case_record(self):
        note = build_note({
            "id": "n1",
            "title": "Groceries",
            "type": "checklist",
            "content": [{"id": 1705312200000, "text": "milk", "isChecked": True}],
            "date": "2024-01-15T10:00:00.000Z",
            "isPrivate": False,
            "isFavorite": True,
            "themeIndex": 3,
            "images": [],
        })

        assert isinstance(note, ChecklistNote)
        assert note.content[0].id == "1705312200000"
        assert note.content[0].is_checked is True
        assert note.is_favorite is True
        assert note.date == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)

    def test_unknown_type_is_rejected(self):
        with pytest.raises(PydanticValidationError):
            build_note({"title": "x", "type": "drawing", "content": ""})

    def test_defaults(self):
        note = build_note({"type": "text"})
        assert note.id
        assert note.title == ""
        assert note.is_private is False
        assert note.is_favorite is False
        assert note.images == ()
        assert note.deleted_at is None
        assert note.is_trashed is False

    def test_notes_are_immutable(self):
        note = TextNote(title="x")
        with pytest.raises(PydanticValidationError):
            note.title = "y"


class TestFieldNormalisation:
    @pytest.mark.parametrize(
        "raw, expected",
        [(-4, 0), (2.7, 2), ("abc", 0), (None, 0), (True, 0), (7, 7)],
    )
    def test_theme_index_is_clamped_not_rejected(self, raw, expected):
        assert TextNote(theme_index=raw).theme_index == expected

    def test_naive_dates_are_treated_as_utc(self):
        note = TextNote(date=datetime(2024, 1, 15, 10, 0))
        assert note.date.tzinfo == timezone.utc

    def test_offset_dates_are_converted_to_utc(self):
        note = TextNote(date="2024-01-15T12:00:00+02:00")
        assert note.date == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


class TestSearch:
    def test_text_note_matches_title_and_content(self):
        note = TextNote(title="Trip", content="Pack the Passport")
        assert note.matches("trip")
        assert note.matches("passport")
        assert not note.matches("tent")

    def test_checklist_matches_title_only(self, make_checklist_note):
        note = make_checklist_note(items=("milk",), title="Groceries")
        assert note.matches("groc")
        assert not note.matches("milk")


class TestChecklistToggle:
    def test_flips_one_item_and_refreshes_date(self, make_checklist_note):
        old = datetime(2020, 1, 1, tzinfo=timezone.utc)
        note = make_checklist_note(items=("milk", "eggs"), date=old)
        target = note.content[1]

        updated = note.with_item_toggled(target.id)

        assert updated.content[1].is_checked is True
        assert updated.content[0].is_checked is False
        assert updated.date > old
        assert note.content[1].is_checked is False

    def test_unknown_item_returns_none(self, make_checklist_note):
        assert make_checklist_note().with_item_toggled("missing") is None

    def test_repeated_item_ids_are_made_unique(self):
        note = build_note({
            "title": "Legacy",
            "type": "checklist",
            "content": [
                {"id": 1700000000000, "text": "a"},
                {"id": 1700000000000, "text": "b"},
            ],
        })

        first, second = note.content
        assert first.id == "1700000000000"
        assert second.id != first.id

        updated = note.with_item_toggled(first.id)

        assert [item.is_checked for item in updated.content] == [True, False]


class TestContentHelpers:
    def test_default_content_for_checklist_is_one_empty_item(self):
        content = default_content(NoteType.CHECKLIST)
        assert len(content) == 1
        assert content[0]["text"] == ""
        assert content[0]["is_checked"] is False

    def test_default_content_for_text_is_empty_string(self):
        assert default_content(NoteType.TEXT) == ""

    def test_string_becomes_checklist_items(self):
        items = coerce_content(NoteType.CHECKLIST, "milk\n\n  eggs  \n")
        assert [item["text"] for item in items] == ["milk", "eggs"]

    def test_items_become_text_lines(self):
        content = [ChecklistItem(text="milk"), {"text": "eggs", "isChecked": True}]
        assert coerce_content(NoteType.TEXT, content) == "milk\neggs"

    def test_missing_text_content_is_empty(self):
        assert coerce_content(NoteType.TEXT, None) == ""

    def test_garbage_checklist_entries_are_dropped(self):
        items = coerce_content(NoteType.CHECKLIST, [{"text": "ok"}, "stray", 4])
        assert items == [{"text": "ok", "is_checked": False}]

    def test_checklist_items_are_normalized(self):
        items = coerce_content(
            NoteType.CHECKLIST,
            [{"id": 1700000000000, "text": 5, "isChecked": 1}, {"id": None, "text": None}],
        )

        assert items[0] == {"id": 1700000000000, "text": "5", "is_checked": True}
        assert items[1] == {"text": "", "is_checked": False}
        note = build_note({"title": "T", "type": "checklist", "content": items})
        assert [item.text for item in note.content] == ["5", ""]

    @pytest.mark.parametrize(
        "index, palette_size, expected",
        [(12, 10, 9), (-1, 10, 0), (4, 10, 4), (3, 1, 0)],
    )
    def test_clamp_theme_index(self, index, palette_size, expected):
        assert clamp_theme_index(index, palette_size) == expected

    def test_clamp_theme_index_requires_a_palette(self):
        with pytest.raises(ValueError):
            clamp_theme_index(0, 0)


class TestEncoding:
    def test_records_use_camel_case_and_omit_empty_deleted_at(self, make_text_note):
        note = make_text_note(is_favorite=True, theme_index=2)

        record = json.loads(encode_notes([note]))[0]

        assert record["isFavorite"] is True
        assert record["themeIndex"] == 2
        assert record["type"] == "text"
        assert "deletedAt" not in record

    def test_decode_restores_both_variants(self, make_text_note, make_checklist_note):
        notes = [make_text_note(), make_checklist_note()]

        decoded = decode_notes(encode_notes(notes))

        assert decoded == notes

    def test_decode_rejects_corrupted_json(self):
        with pytest.raises(PydanticValidationError):
            decode_notes("[{not json")


class TestNoteSchemas:
    def test_title_only_draft_can_be_saved(self):
        assert NoteCreate(title="Just a title").has_body()

    def test_blank_draft_cannot_be_saved(self):
        assert not NoteCreate(title="  ", content="\n").has_body()

    def test_checklist_with_blank_items_cannot_be_saved(self):
        draft = NoteCreate(type=NoteType.CHECKLIST, content=[ChecklistItem(text=" ")])
        assert not draft.has_body()

    def test_patch_reports_only_set_fields(self):
        patch = NotePatch(title="New", type=NoteType.CHECKLIST)
        assert patch.changes() == {"title": "New", "type": "checklist"}
