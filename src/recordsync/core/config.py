"""Configuration for recordsync.

Settings are read from ``RECORDSYNC_*`` environment variables. Both the
server and the CLI build their collaborators from a single Settings object.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_APPSHEET_URL = "https://api.appsheet.com/api/v2"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings for the server, CLI and background workers.

    Attributes:
        db_path: SQLite database file.
        log_path: Log file written alongside stdout.
        storage: Object storage configuration passed to ``create_storage``.
        appsheet_app_id: AppSheet application id (None = in-memory remote).
        appsheet_access_key: AppSheet application access key.
        appsheet_url: AppSheet API base URL.
        remote_timeout: Timeout in seconds for remote store calls.
        upload_max_retries: Retry budget per upload task.
        upload_retry_delay: Base retry delay in seconds (multiplied by retry count).
        upload_inter_task_delay: Pause between two processed upload tasks.
        reconcile_delay: Delay before reconciling a record after its upload.
        upload_tmp_dir: Where uploaded request files are spooled before transfer.
        migration_hour: Hour of the daily full migration (0-23).
        migration_minute: Minute of the daily full migration (0-59).
        sweep_minutes: Interval of the unsynced sweep (0 disables it).
        scheduler_enabled: Whether the server starts the scheduler.
    """

    db_path: Path = Path("recordsync.db")
    log_path: Path = Path("recordsync.log")
    storage: dict[str, str | None] = field(
        default_factory=lambda: {"type": "local", "local_path": "storage"}
    )
    appsheet_app_id: str | None = None
    appsheet_access_key: str | None = None
    appsheet_url: str = DEFAULT_APPSHEET_URL
    remote_timeout: float = 30.0
    upload_max_retries: int = 3
    upload_retry_delay: float = 5.0
    upload_inter_task_delay: float = 1.0
    reconcile_delay: float = 5.0
    upload_tmp_dir: Path = Path("uploads-tmp")
    migration_hour: int = 2
    migration_minute: int = 0
    sweep_minutes: int = 30
    scheduler_enabled: bool = True

    def __post_init__(self) -> None:
        """Normalize the AppSheet URL."""
        self.appsheet_url = self.appsheet_url.rstrip("/")

    @property
    def remote_configured(self) -> bool:
        """Check if AppSheet credentials are present.

        Returns:
            True if both the app id and the access key are set.
        """
        return bool(self.appsheet_app_id and self.appsheet_access_key)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from (default: ``os.environ``).

        Returns:
            Populated Settings.
        """
        env = os.environ if environ is None else environ
        return cls(
            db_path=Path(env.get("RECORDSYNC_DB_PATH", "recordsync.db")),
            log_path=Path(env.get("RECORDSYNC_LOG_PATH", "recordsync.log")),
            storage=build_storage_config(env),
            appsheet_app_id=env.get("RECORDSYNC_APPSHEET_APP_ID") or None,
            appsheet_access_key=env.get("RECORDSYNC_APPSHEET_ACCESS_KEY") or None,
            appsheet_url=env.get("RECORDSYNC_APPSHEET_URL", DEFAULT_APPSHEET_URL),
            remote_timeout=float(env.get("RECORDSYNC_REMOTE_TIMEOUT", "30")),
            upload_max_retries=int(env.get("RECORDSYNC_UPLOAD_MAX_RETRIES", "3")),
            upload_retry_delay=float(env.get("RECORDSYNC_UPLOAD_RETRY_DELAY", "5")),
            upload_inter_task_delay=float(
                env.get("RECORDSYNC_UPLOAD_INTER_TASK_DELAY", "1")
            ),
            reconcile_delay=float(env.get("RECORDSYNC_RECONCILE_DELAY", "5")),
            upload_tmp_dir=Path(env.get("RECORDSYNC_UPLOAD_TMP", "uploads-tmp")),
            migration_hour=int(env.get("RECORDSYNC_MIGRATION_HOUR", "2")),
            migration_minute=int(env.get("RECORDSYNC_MIGRATION_MINUTE", "0")),
            sweep_minutes=int(env.get("RECORDSYNC_SWEEP_MINUTES", "30")),
            scheduler_enabled=_env_bool(env.get("RECORDSYNC_SCHEDULER_ENABLED"), True),
        )


def build_storage_config(environ: Mapping[str, str]) -> dict[str, str | None]:
    """Build storage configuration from environment variables."""
    # S3 storage if bucket is configured
    s3_bucket = environ.get("RECORDSYNC_S3_BUCKET")
    if s3_bucket:
        return {
            "type": "s3",
            "bucket": s3_bucket,
            "endpoint_url": environ.get("RECORDSYNC_S3_ENDPOINT"),
            "access_key": environ.get("RECORDSYNC_S3_ACCESS_KEY"),
            "secret_key": environ.get("RECORDSYNC_S3_SECRET_KEY"),
            "region": environ.get("RECORDSYNC_S3_REGION", "us-east-1"),
        }

    # Local storage (default)
    return {
        "type": "local",
        "local_path": environ.get("RECORDSYNC_STORAGE_PATH", "storage"),
    }
