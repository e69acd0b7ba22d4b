"""Result types returned by sync and migration operations.

Every operation reports what it attempted, what succeeded, what was skipped
and what failed, with reasons.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class ReconcileAction(str, Enum):
    """What reconciliation did to the remote store."""

    UPDATED = "updated"  # row addressed by a confirmed ID was updated
    MATCHED = "matched"  # row found by placeholder or natural key was updated
    CREATED = "created"  # a new row was appended


@dataclass
class ReconcileOutcome:
    """Successful reconciliation of one record."""

    action: ReconcileAction
    remote_id: str


@dataclass
class SyncResult:
    """Result of syncing a single record by id."""

    success: bool
    record_id: int
    remote_id: str | None = None
    action: ReconcileAction | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ErrorDetail:
    """One failed record of a batch."""

    record_id: int | None
    remote_id: str | None
    natural_key: dict[str, Any]
    error: str


@dataclass
class BatchResult:
    """Result of reconciling every unsynced record of an entity."""

    entity: str
    total: int = 0
    synced: int = 0
    errors: int = 0
    error_details: list[ErrorDetail] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.errors == 0

    @property
    def message(self) -> str:
        return (
            f"Synced {self.synced} of {self.total} {self.entity} records"
            f" ({self.errors} errors)"
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["success"] = self.success
        data["message"] = self.message
        return data


@dataclass
class SkipDetail:
    """One remote row skipped during import."""

    remote_id: str | None
    reason: str


@dataclass
class ImportResult:
    """Result of importing remote rows into the local store."""

    entity: str
    total: int = 0
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: list[ErrorDetail] = field(default_factory=list)
    skipped_details: list[SkipDetail] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.errors == 0

    @property
    def message(self) -> str:
        return (
            f"Imported {self.imported} of {self.total} {self.entity} rows"
            f" ({self.skipped} skipped, {self.errors} errors)"
        )

    def skip(self, remote_id: str | None, reason: str) -> None:
        self.skipped += 1
        self.skipped_details.append(SkipDetail(remote_id, reason))

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["success"] = self.success
        data["message"] = self.message
        return data


@dataclass
class FullMigrationResult:
    """Import followed by sync for one entity."""

    entity: str
    imported: ImportResult
    synced: BatchResult

    @property
    def success(self) -> bool:
        return self.imported.success and self.synced.success

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity": self.entity,
            "success": self.success,
            "imported": self.imported.to_dict(),
            "synced": self.synced.to_dict(),
        }


@dataclass
class Comparison:
    """Side-by-side view of a remote row and its local record."""

    entity: str
    remote_id: str
    remote_row: dict[str, str] | None
    local_record: dict[str, Any] | None
    synced: bool | None


@dataclass
class MigrationStatus:
    """Counts and samples from both stores."""

    entity: str
    remote_total: int
    remote_sample: list[dict[str, str]]
    local_total: int
    local_synced: int
    local_unsynced: int
    local_sample: list[dict[str, Any]]


@dataclass
class EntityMigrationReport:
    """Outcome of one entity in a scheduled migration run."""

    entity: str
    success: bool
    duration_seconds: float
    result: FullMigrationResult | None = None
    error: str | None = None


@dataclass
class WriteResult:
    """A local write and the reconciliation it triggered."""

    record: Any
    sync: SyncResult
    queued_uploads: list[str] = field(default_factory=list)
