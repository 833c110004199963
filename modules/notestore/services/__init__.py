"""Business services built on the note repository."""
