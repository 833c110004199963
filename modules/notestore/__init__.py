"""
Note Store.

Persistence, lifecycle and backup engine for a personal notes app.

Usage:
    from modules.notestore.services.notebook import Notebook
    from modules.notestore.storage.memory import MemoryKeyValueStore

    notebook = await Notebook.open(MemoryKeyValueStore())
"""
