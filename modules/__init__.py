"""
Application Modules.

- notestore/: Note collections, privacy gate, backups and configuration
"""
