class NoteStoreError(Exception):
    """Base class for every error raised by a note store."""


class ValidationError(NoteStoreError):
    """Raised when a note is rejected before it reaches storage."""

    def __init__(self, message: str, fields: tuple[str, ...] = ()):
        self.fields = fields
        super().__init__(message)


class StorageError(NoteStoreError):
    """Raised when the storage driver fails; nothing was committed."""


class StoreClosedError(NoteStoreError):
    """Raised when an operation is attempted on a closed store."""


class ConfigError(NoteStoreError):
    """Raised for unusable settings (unknown backend, bad URL)."""
