"""Unit tests for the additive merge of imported notes."""

from modules.notestore.services.merge import merge_notes


class TestMergeNotes:
    def test_imported_notes_come_first(self, make_text_note):
        existing = [make_text_note(title="e1"), make_text_note(title="e2")]
        imported = [make_text_note(title="i1"), make_text_note(title="i2"), make_text_note(title="i3")]

        merged = merge_notes(imported, existing)

        assert [n.title for n in merged] == ["i1", "i2", "i3", "e1", "e2"]
        assert len(merged) == len(imported) + len(existing)

    def test_inputs_are_not_modified(self, make_text_note):
        existing = [make_text_note(title="e1")]
        imported = [make_text_note(title="i1")]

        merge_notes(imported, existing)

        assert [n.title for n in existing] == ["e1"]
        assert [n.title for n in imported] == ["i1"]

    def test_merge_into_empty_collection(self, make_text_note):
        imported = [make_text_note(title="only")]
        assert merge_notes(imported, []) == imported
