"""Migration commands for recordsync CLI.

Commands:
- sync: Reconcile unsynced records of an entity
- import: Import remote rows missing from the database
- migrate: Full migration of one or more entities
- compare: Show a remote row next to its local record
- status: Counts and samples from both stores
- entities: List registered entities
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import click

from recordsync.cli.config import migration_service
from recordsync.core.errors import RecordSyncError
from recordsync.sync.entities import iter_entities
from recordsync.sync.results import ErrorDetail


@contextmanager
def _fail_on_error() -> Iterator[None]:
    """Turn recordsync errors into a message and exit code 1."""
    try:
        yield
    except RecordSyncError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _echo_errors(details: list[ErrorDetail]) -> None:
    for d in details:
        ident = d.remote_id or (f"#{d.record_id}" if d.record_id is not None else "?")
        key = ", ".join(f"{k}={v}" for k, v in d.natural_key.items())
        click.echo(f"  {ident} ({key}): {d.error}", err=True)


def _echo_json(label: str, value: Any) -> None:
    click.echo(f"{label}:")
    if value is None:
        click.echo("  (none)")
        return
    click.echo(json.dumps(value, indent=2, default=str, ensure_ascii=False))


parent_option = click.option(
    "--parent", default=None, help="Only records with this parent key (e.g. credit application id)."
)


@click.command()
@click.argument("entity")
@parent_option
def sync(entity: str, parent: str | None) -> None:
    """Reconcile every unsynced ENTITY record with the remote store."""
    with _fail_on_error(), migration_service() as migration:
        result = migration.sync_to_remote(entity, parent)

    click.echo(result.message)
    if not result.success:
        _echo_errors(result.error_details)
        sys.exit(1)


@click.command("import")
@click.argument("entity")
@parent_option
def import_cmd(entity: str, parent: str | None) -> None:
    """Import ENTITY rows that exist remotely but not locally."""
    with _fail_on_error(), migration_service() as migration:
        result = migration.import_from_remote(entity, parent)

    click.echo(result.message)
    reasons: dict[str, int] = {}
    for skip in result.skipped_details:
        reasons[skip.reason] = reasons.get(skip.reason, 0) + 1
    for reason, count in reasons.items():
        click.echo(f"  skipped {count}: {reason}")
    if not result.success:
        _echo_errors(result.error_details)
        sys.exit(1)


@click.command()
@click.argument("entities", nargs=-1)
def migrate(entities: tuple[str, ...]) -> None:
    """Run a full migration (import, then sync).

    Without ENTITIES, every registered entity is migrated in order.
    """
    with _fail_on_error(), migration_service() as migration:
        reports = migration.run_all(list(entities) or None)

    failed = 0
    for report in reports:
        if report.success:
            click.echo(f"{report.entity}: ok ({report.duration_seconds:.1f}s)")
            continue
        failed += 1
        if report.result is None:
            click.echo(f"{report.entity}: failed ({report.error})", err=True)
        else:
            click.echo(f"{report.entity}: errors ({report.duration_seconds:.1f}s)", err=True)
            _echo_errors(report.result.imported.error_details + report.result.synced.error_details)

    click.echo(f"{len(reports) - failed} of {len(reports)} entities migrated cleanly")
    if failed:
        sys.exit(1)


@click.command()
@click.argument("entity")
@click.argument("remote_id")
def compare(entity: str, remote_id: str) -> None:
    """Show the remote row and local record with REMOTE_ID."""
    with _fail_on_error(), migration_service() as migration:
        result = migration.compare(entity, remote_id)

    _echo_json("Remote", result.remote_row)
    _echo_json("Local", result.local_record)
    if result.synced is not None:
        click.echo(f"Synced: {'yes' if result.synced else 'no'}")


@click.command()
@click.argument("entity")
def status(entity: str) -> None:
    """Show record counts in both stores."""
    with _fail_on_error(), migration_service() as migration:
        result = migration.status(entity)

    click.echo(f"Entity:   {result.entity}")
    click.echo(f"Remote:   {result.remote_total} rows")
    click.echo(
        f"Local:    {result.local_total} records "
        f"({result.local_synced} synced, {result.local_unsynced} unsynced)"
    )


@click.command()
def entities() -> None:
    """List registered entities."""
    for spec in iter_entities():
        key = ", ".join(spec.natural_key.fields) if spec.natural_key.enabled else "-"
        click.echo(f"{spec.name:<30} {spec.table:<32} {spec.prefix:<5} {key}")
