"""Custom exception classes."""


class StoreError(Exception):
    """Base class for remote store failures."""
    pass


class StoreNotConfiguredError(StoreError):
    """Raised when the remote store has no project or credentials."""
    pass


class StorePermissionError(StoreError):
    """Raised when the remote store denies the operation."""
    pass


class RecordNotFoundError(StoreError):
    """Raised when a document ID doesn't exist."""
    pass
