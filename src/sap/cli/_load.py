"""Shared steps of ``sap run`` and ``sap check``: settings, logging, loading.

Every failure here is reported as ``Error: <message>`` on stderr and
exits with status 1.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import anyio

from sap.config import ServerConfig
from sap.errors import ConfigurationError, SapError
from sap.loader import Loader
from sap.routing.table import RouteTable

logger = logging.getLogger("sap.loader")

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def resolve_config(args: argparse.Namespace) -> ServerConfig:
    """Build the settings from the environment plus command-line overrides."""
    root = getattr(args, "root", None)
    try:
        return ServerConfig.from_env(
            root_dir=Path(root) if root else None,
            host=getattr(args, "host", None),
            port=getattr(args, "port", None),
            max_file_size=getattr(args, "max_file_size", None),
            strict_html=getattr(args, "strict_html", None),
            log_level=getattr(args, "log_level", None),
        )
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


def configure_logging(config: ServerConfig) -> None:
    """Point the root logger at stderr using the configured level and format."""
    handler = logging.StreamHandler()
    if config.log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(config.log_level.upper())


def load_table(config: ServerConfig) -> RouteTable:
    """Load the configured root directory, exiting with status 1 on failure."""
    loader = Loader(config.root_dir, config.loader_config())
    logger.info("Loading the files into memory: %r", loader)
    try:
        return anyio.run(loader.load)
    except SapError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
