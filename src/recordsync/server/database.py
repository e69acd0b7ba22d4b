"""Database access using SQLAlchemy with SQLite.

This module provides:
- Database: engine and session lifecycle, one per process
- RecordStore: typed create/read/update for one entity, plus the mapping
  between local column names and remote column headers
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from recordsync.core.errors import (
    IdentificationError,
    RecordNotFoundError,
    UnknownFieldError,
)
from recordsync.server.models import CREATED_AT_HEADER, REMOTE_ID_HEADER, Base
from recordsync.sync.identifiers import UNASSIGNED, RemoteRef

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from recordsync.sync.entities import EntitySpec

logger = logging.getLogger(__name__)

# Currency markers and separators stripped before parsing numbers
_NUMBER_NOISE = re.compile(r"(?i)ksh\.?|kes|\$|,|\s")


def parse_number(value: Any) -> float | None:
    """Parse a remote cell into a float.

    Args:
        value: Raw value (string, number or None).

    Returns:
        Parsed float, or None if empty or unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = _NUMBER_NOISE.sub("", str(value))
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def format_value(value: Any) -> str:
    """Render a local value as a remote cell string."""
    if value is None:
        return ""
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return str(value)


class Database:
    """SQLAlchemy database for entity records.

    Uses SQLite with WAL mode for better concurrency with multiple readers.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize the database.

        Args:
            db_path: Path to the SQLite database file.
        """
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        # check_same_thread=False: the upload worker and the scheduler share the engine
        self._engine: Engine = create_engine(
            f"sqlite:///{self._db_path}",
            connect_args={"check_same_thread": False},
            echo=False,
        )

        with self._engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL")

        Base.metadata.create_all(self._engine)
        self._stores: dict[str, RecordStore] = {}

    @property
    def path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Close the database connection."""
        self._engine.dispose()

    def session(self) -> Session:
        """Create a new database session."""
        return Session(self._engine)

    def records(self, spec: EntitySpec) -> RecordStore:
        """Get the record store of an entity.

        Args:
            spec: Entity specification.

        Returns:
            Cached RecordStore for this entity.
        """
        store = self._stores.get(spec.name)
        if store is None:
            store = RecordStore(self, spec)
            self._stores[spec.name] = store
        return store


class RecordStore:
    """Record Store adapter for one entity.

    All returned records are detached from their session. Updates addressed
    by identifier use the remote identifier; the ``*_by_id`` style methods
    take the local numeric id.
    """

    def __init__(self, db: Database, spec: EntitySpec) -> None:
        self._db = db
        self.spec = spec
        self._model: Any = spec.model

    # === Reads ===

    def get(self, local_id: int) -> Any | None:
        """Get a record by local id.

        Args:
            local_id: Local primary key.

        Returns:
            The record if found, None otherwise.
        """
        with self._db.session() as session:
            record = session.get(self._model, local_id)
            if record is not None:
                session.expunge(record)
            return record

    def find_by_remote_id(self, remote_id: str) -> Any | None:
        """Get a record by its remote identifier."""
        with self._db.session() as session:
            record = session.scalars(
                select(self._model).where(self._model.remote_id == remote_id)
            ).first()
            if record is not None:
                session.expunge(record)
            return record

    def find_all(self, parent_key: str | None = None) -> list[Any]:
        """List records, newest first.

        Args:
            parent_key: Optional value of the entity's parent field.

        Returns:
            List of records.
        """
        stmt = self._filter_parent(select(self._model), parent_key)
        stmt = stmt.order_by(self._model.created_at.desc(), self._model.id.desc())
        with self._db.session() as session:
            records = list(session.scalars(stmt))
            session.expunge_all()
            return records

    def find_unsynced(self, parent_key: str | None = None) -> list[Any]:
        """List records with ``synced == False`` in creation order."""
        stmt = select(self._model).where(self._model.synced.is_(False))
        stmt = self._filter_parent(stmt, parent_key).order_by(self._model.id)
        with self._db.session() as session:
            records = list(session.scalars(stmt))
            session.expunge_all()
            return records

    def count(self, synced: bool | None = None) -> int:
        """Count records, optionally by sync flag."""
        stmt = select(func.count()).select_from(self._model)
        if synced is not None:
            stmt = stmt.where(self._model.synced.is_(synced))
        with self._db.session() as session:
            return int(session.scalar(stmt) or 0)

    # === Writes ===

    def create(
        self,
        fields: dict[str, Any],
        remote_ref: RemoteRef = UNASSIGNED,
        synced: bool = False,
    ) -> Any:
        """Create a record.

        Args:
            fields: Domain field values keyed by local column name.
            remote_ref: Initial remote identifier state.
            synced: Initial sync flag.

        Returns:
            Created record.

        Raises:
            UnknownFieldError: If a key is not a domain field.
            IntegrityError: If the remote identifier is already used.
        """
        self._check_fields(fields)
        with self._db.session() as session:
            record = self._model(
                **fields,
                remote_id=remote_ref.value,
                remote_id_state=remote_ref.state.value,
                synced=synced,
            )
            session.add(record)
            session.commit()
            session.refresh(record)
            session.expunge(record)
            return record

    def update(self, remote_id: str, fields: dict[str, Any]) -> Any:
        """Update the record addressed by remote identifier.

        Raises:
            RecordNotFoundError: If no record has this identifier.
        """
        self._check_fields(fields)
        with self._db.session() as session:
            record = session.scalars(
                select(self._model).where(self._model.remote_id == remote_id)
            ).first()
            if record is None:
                raise RecordNotFoundError(
                    f"{self.spec.name}: no record with remote id {remote_id}"
                )
            return self._apply(session, record, fields)

    def update_fields(
        self,
        local_id: int,
        fields: dict[str, Any],
        mark_unsynced: bool = False,
    ) -> Any:
        """Update domain fields of a record by local id.

        Args:
            local_id: Local primary key.
            fields: Domain field values to set.
            mark_unsynced: Also reset the sync flag.

        Raises:
            RecordNotFoundError: If the record does not exist.
        """
        self._check_fields(fields)
        with self._db.session() as session:
            record = self._require(session, local_id)
            if mark_unsynced:
                record.synced = False
            return self._apply(session, record, fields)

    def patch_field(self, local_id: int, field: str, value: Any) -> Any:
        """Set one domain field and mark the record unsynced.

        Used to store uploaded file locations; the remote row no longer
        matches until the record is reconciled again.
        """
        return self.update_fields(local_id, {field: value}, mark_unsynced=True)

    def set_remote_ref(self, local_id: int, ref: RemoteRef, synced: bool | None = None) -> Any:
        """Persist the remote identifier state of a record.

        Args:
            local_id: Local primary key.
            ref: New remote identifier state.
            synced: Optionally set the sync flag in the same commit.

        Raises:
            RecordNotFoundError: If the record does not exist.
            IdentificationError: If another record already holds the identifier.
        """
        with self._db.session() as session:
            record = self._require(session, local_id)
            record.remote_id = ref.value
            record.remote_id_state = ref.state.value
            if synced is not None:
                record.synced = synced
            try:
                return self._apply(session, record, {})
            except IntegrityError as e:
                session.rollback()
                raise IdentificationError(
                    f"{self.spec.name} #{local_id}: remote id {ref.value} "
                    "already belongs to another record"
                ) from e

    def update_sync_flag(self, local_id: int, synced: bool) -> None:
        """Set the sync flag of a record."""
        with self._db.session() as session:
            record = self._require(session, local_id)
            record.synced = synced
            session.commit()

    # === Mapping ===

    def values(self, record: Any) -> dict[str, Any]:
        """Domain field values of a record keyed by local column name."""
        return {m.name: getattr(record, m.name) for m in self.spec.fields}

    def to_remote_fields(self, record: Any) -> dict[str, str]:
        """Map a record to a remote row (headers -> strings).

        The ID column is included when the record has an identifier.
        """
        row = {m.header: format_value(getattr(record, m.name)) for m in self.spec.fields}
        if record.remote_id:
            row[REMOTE_ID_HEADER] = record.remote_id
        if record.created_at is not None:
            row[CREATED_AT_HEADER] = record.created_at.isoformat()
        return row

    def from_remote_row(self, row: dict[str, Any]) -> dict[str, Any]:
        """Map a remote row to local field values.

        Empty cells are dropped and number fields are parsed; unknown headers
        (including ID and Created At) are ignored.
        """
        fields: dict[str, Any] = {}
        for mapping in self.spec.fields:
            raw = row.get(mapping.header)
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                continue
            if mapping.number:
                number = parse_number(raw)
                if number is not None:
                    fields[mapping.name] = number
            else:
                fields[mapping.name] = str(raw)
        return fields

    # === Helpers ===

    def _filter_parent(self, stmt: Any, parent_key: str | None) -> Any:
        if parent_key is None or self.spec.parent_field is None:
            return stmt
        return stmt.where(getattr(self._model, self.spec.parent_field) == parent_key)

    def _check_fields(self, fields: dict[str, Any]) -> None:
        unknown = set(fields) - self.spec.field_names
        if unknown:
            raise UnknownFieldError(
                f"{self.spec.name}: unknown fields {', '.join(sorted(unknown))}"
            )

    def _require(self, session: Session, local_id: int) -> Any:
        record = session.get(self._model, local_id)
        if record is None:
            raise RecordNotFoundError(f"{self.spec.name} #{local_id} not found")
        return record

    def _apply(self, session: Session, record: Any, fields: dict[str, Any]) -> Any:
        for name, value in fields.items():
            setattr(record, name, value)
        session.commit()
        session.refresh(record)
        session.expunge(record)
        return record
