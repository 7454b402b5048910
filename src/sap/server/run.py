"""Start a pounce ASGI server for a loaded ``MemServer``.

Pounce's ``run()`` takes an import string, but sap has a live app
object built from the loaded files, so ``pounce.Server`` is used
directly with the ASGI callable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sap.server.mem import MemServer


def run_server(
    app: MemServer,
    host: str = "0.0.0.0",
    port: int = 8080,
    *,
    log_format: str = "text",
    log_level: str = "info",
) -> None:
    """Serve *app* until interrupted.

    A single worker holds the route table; the table is read-only, so
    one process serves any number of concurrent requests without locks.

    Args:
        app: The loaded in-memory server.
        host: Bind address.
        port: Bind port.
        log_format: Pounce access log format ("json" or "text").
        log_level: Log level (debug, info, warning, error, critical).
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=1,
        log_format=log_format,
        log_level=log_level,
    )
    server = Server(config, app)
    server.run()
