"""Remote Store clients.

This module provides:
- RemoteStore: interface used by the reconciler (list, append, update by ID)
- AppSheetClient: AppSheet table over the v2 Action API
- InMemoryRemoteStore: thread-safe in-process table (tests, dry runs)
- RemoteStores: one store per entity, sharing an HTTP client
"""

from __future__ import annotations

import logging
import secrets
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import httpx

from recordsync.core.errors import RemoteRowNotFoundError, RemoteStoreError
from recordsync.server.models import REMOTE_ID_HEADER

if TYPE_CHECKING:
    from recordsync.core.config import Settings
    from recordsync.sync.entities import EntitySpec

logger = logging.getLogger(__name__)

Row = dict[str, str]


class RemoteStore(ABC):
    """A record-oriented remote table keyed by the ID column."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Table name, for logs."""

    @abstractmethod
    def list_all(self) -> list[Row]:
        """Return every row of the table.

        Raises:
            RemoteStoreError: If the call fails.
        """

    @abstractmethod
    def append(self, fields: Row, proposed_id: str | None = None) -> Row:
        """Append a row.

        Args:
            fields: Row values keyed by header.
            proposed_id: Identifier to store, when the caller assigns one.

        Returns:
            The stored row, including its ID.

        Raises:
            RemoteStoreError: If the call fails.
        """

    @abstractmethod
    def update_by_identifier(self, remote_id: str, fields: Row) -> None:
        """Update the row with this identifier.

        Raises:
            RemoteRowNotFoundError: If no row has this identifier.
            RemoteStoreError: If the call fails.
        """

    def find(self, remote_id: str) -> Row | None:
        """Find a row by identifier with a full scan."""
        for row in self.list_all():
            if row.get(REMOTE_ID_HEADER) == remote_id:
                return row
        return None


def _stringify(row: dict[str, Any]) -> Row:
    return {str(k): "" if v is None else str(v) for k, v in row.items()}


class AppSheetClient(RemoteStore):
    """One AppSheet table accessed through the v2 Action endpoint."""

    def __init__(
        self,
        http: httpx.Client,
        app_id: str,
        access_key: str,
        table: str,
        base_url: str = "https://api.appsheet.com/api/v2",
    ) -> None:
        """Initialize the client.

        Args:
            http: Shared HTTP client (owns timeouts and connection pooling).
            app_id: AppSheet application id.
            access_key: Application access key.
            table: Table name.
            base_url: API base URL.
        """
        self._http = http
        self._access_key = access_key
        self._table = table
        self._url = f"{base_url.rstrip('/')}/apps/{app_id}/tables/{table}/Action"

    @property
    def name(self) -> str:
        return self._table

    def _action(
        self,
        action: str,
        rows: list[Row] | None = None,
        properties: dict[str, str] | None = None,
    ) -> list[Row]:
        """Call the Action endpoint.

        Args:
            action: "Find", "Add" or "Edit".
            rows: Rows for Add/Edit.
            properties: Extra request properties (Selector, Locale).

        Returns:
            Rows returned by AppSheet (empty list for an empty body).

        Raises:
            RemoteStoreError: On transport errors or non-2xx responses.
        """
        body: dict[str, Any] = {
            "Action": action,
            "Properties": {"Locale": "en-US", **(properties or {})},
            "Rows": rows or [],
        }
        logger.debug("AppSheet %s %s (%d rows)", action, self._table, len(body["Rows"]))
        try:
            response = self._http.post(
                self._url,
                json=body,
                headers={
                    "ApplicationAccessKey": self._access_key,
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"AppSheet {action} {self._table} failed: {e}") from e

        if response.status_code >= 400:
            raise RemoteStoreError(
                f"AppSheet {action} {self._table} failed: status {response.status_code}",
                status_code=response.status_code,
            )
        if not response.content.strip():
            return []
        try:
            data = response.json()
        except ValueError as e:
            raise RemoteStoreError(
                f"AppSheet {action} {self._table} returned invalid JSON"
            ) from e
        if isinstance(data, dict):
            data = data.get("Rows", [])
        if not isinstance(data, list):
            raise RemoteStoreError(f"AppSheet {action} {self._table} returned {type(data).__name__}")
        return [_stringify(row) for row in data if isinstance(row, dict)]

    def list_all(self) -> list[Row]:
        return self._action("Find")

    def find(self, remote_id: str) -> Row | None:
        if '"' in remote_id:
            # Cannot be quoted inside a selector literal; filter locally
            rows = self.list_all()
        else:
            selector = f'Filter({self._table}, [{REMOTE_ID_HEADER}] = "{remote_id}")'
            rows = self._action("Find", properties={"Selector": selector})
        for row in rows:
            if row.get(REMOTE_ID_HEADER) == remote_id:
                return row
        return None

    def append(self, fields: Row, proposed_id: str | None = None) -> Row:
        row = dict(fields)
        if proposed_id:
            row[REMOTE_ID_HEADER] = proposed_id
        else:
            row.pop(REMOTE_ID_HEADER, None)
        returned = self._action("Add", rows=[row])
        stored = returned[0] if returned else row
        if not stored.get(REMOTE_ID_HEADER):
            raise RemoteStoreError(f"AppSheet Add {self._table} returned no {REMOTE_ID_HEADER}")
        return stored

    def update_by_identifier(self, remote_id: str, fields: Row) -> None:
        if self.find(remote_id) is None:
            raise RemoteRowNotFoundError(f"{self._table}: no row with ID {remote_id}")
        self._action("Edit", rows=[{**fields, REMOTE_ID_HEADER: remote_id}])


class InMemoryRemoteStore(RemoteStore):
    """Remote table held in memory.

    When caller-assigned identifiers are disabled, appended rows get a
    generated 8-character hex ID regardless of the proposal.
    """

    def __init__(self, name: str = "memory", caller_assigned_ids: bool = True) -> None:
        self._name = name
        self._caller_assigned_ids = caller_assigned_ids
        self._rows: list[Row] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def rows(self) -> list[Row]:
        """Copy of the stored rows."""
        with self._lock:
            return [dict(row) for row in self._rows]

    def list_all(self) -> list[Row]:
        return self.rows

    def append(self, fields: Row, proposed_id: str | None = None) -> Row:
        with self._lock:
            row = dict(fields)
            if proposed_id and self._caller_assigned_ids:
                row[REMOTE_ID_HEADER] = proposed_id
            else:
                row[REMOTE_ID_HEADER] = secrets.token_hex(4)
            self._rows.append(row)
            return dict(row)

    def update_by_identifier(self, remote_id: str, fields: Row) -> None:
        with self._lock:
            for row in self._rows:
                if row.get(REMOTE_ID_HEADER) == remote_id:
                    row.update(fields)
                    row[REMOTE_ID_HEADER] = remote_id
                    return
        raise RemoteRowNotFoundError(f"{self._name}: no row with ID {remote_id}")

    def delete(self, remote_id: str) -> bool:
        """Remove a row (simulates an out-of-band deletion)."""
        with self._lock:
            before = len(self._rows)
            self._rows = [r for r in self._rows if r.get(REMOTE_ID_HEADER) != remote_id]
            return len(self._rows) < before


class RemoteStores:
    """Lazily built remote store per entity."""

    def __init__(
        self,
        factory: Callable[[EntitySpec], RemoteStore],
        http: httpx.Client | None = None,
    ) -> None:
        self._factory = factory
        self._http = http
        self._stores: dict[str, RemoteStore] = {}
        self._lock = threading.Lock()

    def for_entity(self, spec: EntitySpec) -> RemoteStore:
        """Get (or build) the remote store of an entity."""
        with self._lock:
            store = self._stores.get(spec.name)
            if store is None:
                store = self._factory(spec)
                self._stores[spec.name] = store
            return store

    def close(self) -> None:
        """Close the shared HTTP client, if any."""
        if self._http is not None:
            self._http.close()
            self._http = None

    @classmethod
    def in_memory(cls) -> RemoteStores:
        """Stores backed by InMemoryRemoteStore."""
        return cls(lambda spec: InMemoryRemoteStore(spec.table, spec.caller_assigned_ids))

    @classmethod
    def from_settings(cls, settings: Settings) -> RemoteStores:
        """Build AppSheet stores, or in-memory ones when credentials are missing."""
        if not settings.remote_configured:
            logger.warning("AppSheet credentials not configured, using in-memory remote store")
            return cls.in_memory()

        http = httpx.Client(timeout=settings.remote_timeout)
        app_id = settings.appsheet_app_id or ""
        access_key = settings.appsheet_access_key or ""

        def build(spec: EntitySpec) -> RemoteStore:
            return AppSheetClient(http, app_id, access_key, spec.table, settings.appsheet_url)

        return cls(build, http=http)
