"""``sap check``: load the files, then exit.

Useful at deploy time: validates the bundle and the templating
environment without binding a port.  Exits with code 1 on any load
failure.
"""

from sap.cli._load import configure_logging, load_table
from sap.config import ServerConfig


def run_check(config: ServerConfig) -> None:
    """Load everything under ``config.root_dir`` and report the result."""
    configure_logging(config)
    table = load_table(config)
    fallback = " (root as not found)" if table.not_found is not None else ""
    print(f"OK: {len(table)} routes loaded from {config.root_dir}{fallback}")
