"""Exception hierarchy shared by the store adapters and the sync engine."""

from __future__ import annotations


class RecordSyncError(Exception):
    """Base exception for recordsync errors."""


class UnknownEntityError(RecordSyncError):
    """Raised when an entity name is not in the registry."""


class UnknownFieldError(RecordSyncError):
    """Raised when a write names a column the entity does not have."""


class RecordNotFoundError(RecordSyncError):
    """Raised when a local record cannot be found."""


class IdentificationError(RecordSyncError):
    """Raised when a record cannot be tied to a remote identifier."""


class RemoteStoreError(RecordSyncError):
    """Raised when a call to the remote store fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RemoteRowNotFoundError(RemoteStoreError):
    """Remote row addressed by identifier does not exist."""
