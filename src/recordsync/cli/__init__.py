"""Command-line interface for recordsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- serve: Run the HTTP server
- sync: Reconcile unsynced records of an entity
- import: Import remote rows missing locally
- migrate: Full migration of one or more entities
- compare: Show a remote row next to its local record
- status: Counts in both stores
- entities: List registered entities
"""

from __future__ import annotations

import logging

import click

from recordsync import __version__
from recordsync.cli.migration import compare, entities, import_cmd, migrate, status, sync
from recordsync.cli.server import serve
from recordsync.server.app import setup_logging


@click.group()
@click.version_option(__version__)
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stdout.")
def cli(verbose: bool) -> None:
    """recordsync - local records reconciled with AppSheet."""
    if verbose:
        setup_logging(None, level=logging.INFO)


# Server command
cli.add_command(serve)

# Migration commands
cli.add_command(sync)
cli.add_command(import_cmd)
cli.add_command(migrate)
cli.add_command(compare)
cli.add_command(status)
cli.add_command(entities)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = ["cli", "main"]
