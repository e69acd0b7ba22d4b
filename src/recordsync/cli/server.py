"""Server command for recordsync CLI.

Commands:
- serve: Run the HTTP API with the upload queue and scheduler
"""

from __future__ import annotations

import click


@click.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address.")
@click.option("--port", "-p", type=int, default=8000, show_default=True, help="Bind port.")
def serve(host: str, port: int) -> None:
    """Run the recordsync server.

    Settings are read from RECORDSYNC_* environment variables.
    """
    import uvicorn

    uvicorn.run(
        "recordsync.server.app:app_factory",
        factory=True,
        host=host,
        port=port,
    )
