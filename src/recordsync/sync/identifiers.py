"""Remote identifier states.

A record's link to its remote row is one of:

    Unassigned            no identifier yet
    Placeholder(token)    locally generated, not yet accepted by the remote store
    Confirmed(remote_id)  accepted by the remote store

The state is persisted in ``remote_id_state``. Rows written before that
column existed have a NULL state; their identifier is classified by prefix.
"""

from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeAlias

from recordsync.core.types import RemoteIdState

if TYPE_CHECKING:
    from collections.abc import Iterable

    from recordsync.sync.entities import EntitySpec

_BASE36 = string.digits + string.ascii_lowercase
PLACEHOLDER_SUFFIX_LENGTH = 5


@dataclass(frozen=True)
class Unassigned:
    """No remote identifier yet."""

    @property
    def value(self) -> None:
        return None

    @property
    def state(self) -> RemoteIdState:
        return RemoteIdState.UNASSIGNED


@dataclass(frozen=True)
class Placeholder:
    """Locally generated identifier awaiting confirmation."""

    token: str

    @property
    def value(self) -> str:
        return self.token

    @property
    def state(self) -> RemoteIdState:
        return RemoteIdState.PLACEHOLDER


@dataclass(frozen=True)
class Confirmed:
    """Identifier accepted by the remote store."""

    remote_id: str

    @property
    def value(self) -> str:
        return self.remote_id

    @property
    def state(self) -> RemoteIdState:
        return RemoteIdState.CONFIRMED


RemoteRef: TypeAlias = Unassigned | Placeholder | Confirmed

UNASSIGNED = Unassigned()


def new_placeholder(prefix: str) -> Placeholder:
    """Generate a placeholder token.

    Format: ``<PREFIX>-<epoch ms>-<5 base36 chars>``.
    """
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(PLACEHOLDER_SUFFIX_LENGTH))
    return Placeholder(f"{prefix}-{millis}-{suffix}")


def has_placeholder_prefix(value: str, prefixes: Iterable[str]) -> bool:
    """Check if an identifier starts with one of the placeholder prefixes."""
    return any(value.startswith(f"{prefix}-") for prefix in prefixes)


def classify(
    remote_id: str | None,
    state: str | None,
    prefixes: Iterable[str],
) -> RemoteRef:
    """Build a RemoteRef from stored column values.

    Args:
        remote_id: Stored identifier (may be None).
        state: Stored state tag (None for legacy rows).
        prefixes: Placeholder prefixes of the entity.

    Returns:
        The matching RemoteRef.
    """
    if not remote_id:
        return UNASSIGNED
    if state is None:
        if has_placeholder_prefix(remote_id, prefixes):
            return Placeholder(remote_id)
        return Confirmed(remote_id)
    tag = RemoteIdState(state)
    if tag is RemoteIdState.PLACEHOLDER:
        return Placeholder(remote_id)
    if tag is RemoteIdState.CONFIRMED:
        return Confirmed(remote_id)
    return UNASSIGNED


def remote_ref_of(record: Any, spec: EntitySpec) -> RemoteRef:
    """Read the RemoteRef of a local record."""
    return classify(record.remote_id, record.remote_id_state, spec.placeholder_prefixes)
