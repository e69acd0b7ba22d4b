"""Shared enums for recordsync."""

from __future__ import annotations

from enum import Enum


class RemoteIdState(str, Enum):
    """Persisted tag of a record's remote identifier.

    Stored in the ``remote_id_state`` column. A NULL column marks a
    legacy row whose state is inferred from the identifier prefix.
    """

    UNASSIGNED = "unassigned"
    PLACEHOLDER = "placeholder"
    CONFIRMED = "confirmed"


class MatchPolicy(str, Enum):
    """How the reconciler looks for an existing remote row without an ID."""

    DISABLED = "disabled"
    MATCH = "match"
