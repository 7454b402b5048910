"""``sap run``: load the files, then serve them from memory."""

import logging

from sap.cli._load import configure_logging, load_table
from sap.config import ServerConfig
from sap.server.mem import MemServer

logger = logging.getLogger("sap.server")


def run_command(config: ServerConfig) -> None:
    """Load everything under ``config.root_dir`` and start the server.

    Loading finishes before the port is bound, so a broken bundle never
    starts serving.
    """
    configure_logging(config)
    table = load_table(config)
    app = MemServer(table, not_found_status=config.not_found_status)

    from sap.server.run import run_server

    logger.info("About to start the server on %s:%d", config.host, config.port)
    run_server(
        app,
        config.host,
        config.port,
        log_format=config.log_format,
        log_level=config.log_level,
    )
