"""Tests for core configuration classes."""

from __future__ import annotations

from pathlib import Path

from recordsync.core.config import DEFAULT_APPSHEET_URL, Settings, build_storage_config


class TestSettings:
    """Tests for Settings class."""

    def test_defaults(self) -> None:
        """Should use documented defaults."""
        settings = Settings()
        assert settings.db_path == Path("recordsync.db")
        assert settings.appsheet_url == DEFAULT_APPSHEET_URL
        assert settings.upload_max_retries == 3
        assert settings.upload_retry_delay == 5.0
        assert settings.upload_inter_task_delay == 1.0
        assert settings.reconcile_delay == 5.0
        assert settings.migration_hour == 2
        assert settings.migration_minute == 0
        assert settings.sweep_minutes == 30
        assert settings.scheduler_enabled is True

    def test_url_trailing_slash_removed(self) -> None:
        """Should strip trailing slash from the AppSheet URL."""
        settings = Settings(appsheet_url="https://example.com/api/v2/")
        assert settings.appsheet_url == "https://example.com/api/v2"

    def test_remote_configured_requires_both_credentials(self) -> None:
        """Should report AppSheet as configured only with id and key."""
        assert Settings().remote_configured is False
        assert Settings(appsheet_app_id="app").remote_configured is False
        assert Settings(appsheet_app_id="app", appsheet_access_key="key").remote_configured is True


class TestFromEnv:
    """Tests for Settings.from_env."""

    def test_empty_environment_gives_defaults(self) -> None:
        """Should fall back to defaults for missing variables."""
        settings = Settings.from_env({})
        assert settings == Settings()

    def test_reads_variables(self) -> None:
        """Should read RECORDSYNC_* variables."""
        settings = Settings.from_env(
            {
                "RECORDSYNC_DB_PATH": "/data/records.db",
                "RECORDSYNC_APPSHEET_APP_ID": "app-1",
                "RECORDSYNC_APPSHEET_ACCESS_KEY": "secret",
                "RECORDSYNC_UPLOAD_MAX_RETRIES": "5",
                "RECORDSYNC_UPLOAD_RETRY_DELAY": "2.5",
                "RECORDSYNC_RECONCILE_DELAY": "0",
                "RECORDSYNC_MIGRATION_HOUR": "4",
                "RECORDSYNC_MIGRATION_MINUTE": "15",
                "RECORDSYNC_SWEEP_MINUTES": "0",
                "RECORDSYNC_SCHEDULER_ENABLED": "false",
            }
        )
        assert settings.db_path == Path("/data/records.db")
        assert settings.remote_configured is True
        assert settings.upload_max_retries == 5
        assert settings.upload_retry_delay == 2.5
        assert settings.reconcile_delay == 0.0
        assert settings.migration_hour == 4
        assert settings.migration_minute == 15
        assert settings.sweep_minutes == 0
        assert settings.scheduler_enabled is False

    def test_empty_credentials_are_none(self) -> None:
        """Should treat empty credential variables as unset."""
        settings = Settings.from_env({"RECORDSYNC_APPSHEET_APP_ID": ""})
        assert settings.appsheet_app_id is None


class TestBuildStorageConfig:
    """Tests for build_storage_config."""

    def test_local_by_default(self) -> None:
        """Should use local storage when no bucket is set."""
        config = build_storage_config({"RECORDSYNC_STORAGE_PATH": "/srv/files"})
        assert config == {"type": "local", "local_path": "/srv/files"}

    def test_s3_when_bucket_set(self) -> None:
        """Should use S3 when a bucket is configured."""
        config = build_storage_config(
            {
                "RECORDSYNC_S3_BUCKET": "attachments",
                "RECORDSYNC_S3_ENDPOINT": "http://minio:9000",
            }
        )
        assert config["type"] == "s3"
        assert config["bucket"] == "attachments"
        assert config["endpoint_url"] == "http://minio:9000"
        assert config["region"] == "us-east-1"
