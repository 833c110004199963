"""
Base Service.

Base class for services that orchestrate the note repository and implement
business rules on top of it.

Usage:
    from modules.notestore.services.base import BaseService

    class ArchiveService(BaseService):
        async def archive_all(self) -> None:
            self._log_operation("Archiving notes", count=len(self.repository.active))
"""

from typing import Any

from modules.notestore.core.logging import get_logger
from modules.notestore.repositories.note import NoteRepository


class BaseService:
    """
    Base class for all services.

    Provides:
    - Repository access
    - Logging context
    """

    def __init__(self, repository: NoteRepository) -> None:
        """
        Initialize the service with the session's repository.

        Args:
            repository: The note repository owning the collections
        """
        self._repository = repository
        self._logger = get_logger(self.__class__.__module__)

    @property
    def repository(self) -> NoteRepository:
        """Get the note repository."""
        return self._repository

    def _log_operation(
        self,
        operation: str,
        **context: Any,
    ) -> None:
        """Log a service operation with context."""
        self._logger.info(
            operation,
            extra={"service": self.__class__.__name__, **context},
        )

    def _log_debug(
        self,
        message: str,
        **context: Any,
    ) -> None:
        """Log debug information."""
        self._logger.debug(
            message,
            extra={"service": self.__class__.__name__, **context},
        )
