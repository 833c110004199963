"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.

Missing note ids are not errors: repository operations return None for them,
since the UI may race with a deletion that already completed.
"""


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class ValidationError(ApplicationError):
    """Raised when validation fails."""

    def __init__(self, message: str = "Validation failed", details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message, code="VAL_VALIDATION_ERROR")


class PrivacyViolationError(ApplicationError):
    """Raised when a note would become private while no PIN is set."""

    def __init__(self, message: str = "A PIN must be set before notes can be made private") -> None:
        super().__init__(message, code="PRIV_PIN_REQUIRED")


class StorageError(ApplicationError):
    """Raised by a key-value store adapter when a read or write fails."""

    def __init__(self, message: str = "Storage operation failed") -> None:
        super().__init__(message, code="SYS_STORAGE_ERROR")


class PersistenceError(ApplicationError):
    """Raised when a collection could not be persisted after retries.

    The in-memory state is left as it was before the operation.
    """

    def __init__(self, message: str = "Persistence failed", key: str | None = None) -> None:
        self.key = key
        super().__init__(message, code="SYS_PERSISTENCE_ERROR")


class BackupValidationError(ApplicationError):
    """Base class for backup documents that cannot be imported or exported."""

    def __init__(self, message: str, code: str = "BAK_INVALID") -> None:
        super().__init__(message, code=code)


class MalformedDocumentError(BackupValidationError):
    """Raised when a backup document cannot be parsed."""

    def __init__(self, message: str = "Invalid file format. Please select a valid notes backup file.") -> None:
        super().__init__(message, code="BAK_MALFORMED")


class EmptyInputError(BackupValidationError):
    """Raised when there is nothing to export."""

    def __init__(self, message: str = "You don't have any notes to export yet.") -> None:
        super().__init__(message, code="BAK_EMPTY_INPUT")


class NoNotesFoundError(BackupValidationError):
    """Raised when a backup document holds an empty notes array."""

    def __init__(self, message: str = "No notes found in the backup file.") -> None:
        super().__init__(message, code="BAK_NO_NOTES")


class NoValidNotesError(BackupValidationError):
    """Raised when every entry of a backup document was rejected."""

    def __init__(self, message: str = "No valid notes found in the backup file.") -> None:
        super().__init__(message, code="BAK_NO_VALID_NOTES")
