"""Shared service wiring for recordsync CLI commands.

Commands build their collaborators from ``RECORDSYNC_*`` environment
variables, the same way the server does.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from recordsync.core.config import Settings
from recordsync.server.database import Database
from recordsync.server.migration import MigrationService
from recordsync.sync.reconcile import Reconcilers
from recordsync.sync.remote import RemoteStores


def load_settings() -> Settings:
    """Read settings from the environment."""
    return Settings.from_env()


def build_remotes(settings: Settings) -> RemoteStores:
    """Build the remote stores for a CLI run."""
    return RemoteStores.from_settings(settings)


@contextmanager
def migration_service() -> Iterator[MigrationService]:
    """Open the database and remote stores for the duration of a command."""
    settings = load_settings()
    db = Database(settings.db_path)
    remotes = build_remotes(settings)
    try:
        yield MigrationService(Reconcilers(db, remotes))
    finally:
        remotes.close()
        db.close()
