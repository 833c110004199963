"""
Merge Engine.

Combines imported notes with the active collection. Imports are strictly
additive: nothing already in the collection is mutated, removed or
overwritten, so importing the same backup twice yields two copies of each
imported note rather than corrupted state.
"""

from collections.abc import Iterable

from modules.notestore.models.note import Note


def merge_notes(imported: Iterable[Note], existing: Iterable[Note]) -> list[Note]:
    """
    Place imported notes ahead of existing ones, preserving both orders.

    Imported notes carry ids freshly assigned by the backup codec, so no id
    collision handling is needed here.

    Args:
        imported: Notes produced by BackupCodec.import_notes
        existing: Current active collection

    Returns:
        New list; neither input is modified
    """
    return [*imported, *existing]
