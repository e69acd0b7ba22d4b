"""Scheduler for automatic migration tasks.

This module provides:
- Automatic daily full migration of every entity (default 2:00 AM)
- Periodic sweep reconciling records left unsynced
- Manual run for CLI/API usage
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from recordsync.sync.entities import iter_entities

if TYPE_CHECKING:
    from recordsync.server.migration import MigrationService
    from recordsync.sync.results import BatchResult, EntityMigrationReport

logger = logging.getLogger(__name__)


class MigrationScheduler:
    """Scheduler for automatic migration tasks.

    Runs:
    - Full migration of every entity daily at hour:minute
    - Unsynced sweep every sweep_minutes
    """

    def __init__(
        self,
        migration: MigrationService,
        hour: int = 2,
        minute: int = 0,
        sweep_minutes: int = 30,
    ) -> None:
        """Initialize the scheduler.

        Args:
            migration: Migration service running the jobs.
            hour: Hour to run the full migration (0-23).
            minute: Minute to run the full migration (0-59).
            sweep_minutes: Interval of the unsynced sweep (0 disables it).
        """
        self._migration = migration
        self._hour = hour
        self._minute = minute
        self._sweep_minutes = sweep_minutes
        self._scheduler: BackgroundScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def _migration_job(self) -> None:
        """Job function for the scheduled full migration."""
        logger.info("Starting scheduled migration")
        try:
            reports = self._migration.run_all()
            failed = [r.entity for r in reports if not r.success]
            if failed:
                logger.warning("Scheduled migration finished with errors in: %s", ", ".join(failed))
        except Exception:
            logger.exception("Error during scheduled migration")

    def _sweep_job(self) -> None:
        """Job function for the unsynced sweep."""
        logger.debug("Starting unsynced sweep")
        try:
            self.sweep_now()
        except Exception:
            logger.exception("Error during unsynced sweep")

    def start(self) -> None:
        """Start the scheduler."""
        if self._scheduler is not None:
            return  # Already running

        self._scheduler = BackgroundScheduler()

        self._scheduler.add_job(
            self._migration_job,
            trigger=CronTrigger(hour=self._hour, minute=self._minute),
            id="full_migration",
            name="Daily full migration",
            replace_existing=True,
        )

        if self._sweep_minutes > 0:
            self._scheduler.add_job(
                self._sweep_job,
                trigger=IntervalTrigger(minutes=self._sweep_minutes),
                id="unsynced_sweep",
                name="Unsynced record sweep",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )

        self._scheduler.start()
        logger.info(
            "Migration scheduler started (daily at %02d:%02d, sweep every %d min)",
            self._hour,
            self._minute,
            self._sweep_minutes,
        )

    def stop(self) -> None:
        """Stop the scheduler."""
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Migration scheduler stopped")

    def run_now(self) -> list[EntityMigrationReport]:
        """Run the full migration immediately (manual trigger)."""
        return self._migration.run_all()

    def sweep_now(self) -> list[BatchResult]:
        """Reconcile unsynced records of every entity immediately.

        Returns:
            One batch result per entity that had unsynced records.
        """
        results = []
        for spec in iter_entities():
            result = self._migration.sync_to_remote(spec.name)
            if result.total:
                results.append(result)
        synced = sum(r.synced for r in results)
        errors = sum(r.errors for r in results)
        if synced or errors:
            logger.info("Unsynced sweep: %d synced, %d errors", synced, errors)
        return results
