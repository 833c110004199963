"""Data access for the note collections."""
