"""Core module - Shared configuration, errors and enums."""

from recordsync.core.config import Settings
from recordsync.core.errors import (
    IdentificationError,
    RecordNotFoundError,
    RecordSyncError,
    RemoteRowNotFoundError,
    RemoteStoreError,
    UnknownEntityError,
    UnknownFieldError,
)
from recordsync.core.types import MatchPolicy, RemoteIdState

__all__ = [
    # Config
    "Settings",
    # Errors
    "IdentificationError",
    "RecordNotFoundError",
    "RecordSyncError",
    "RemoteRowNotFoundError",
    "RemoteStoreError",
    "UnknownEntityError",
    "UnknownFieldError",
    # Types
    "MatchPolicy",
    "RemoteIdState",
]
