"""Sap CLI: load an SPA into memory, then serve it or just validate it.

Entry point registered as ``sap`` in ``pyproject.toml``::

    [project.scripts]
    sap = "sap.cli:main"

Settings come from environment variables (see ``sap.config``); flags
override them.  Without a sub-command, ``MODE`` picks between ``run``
and ``check``.
"""

import argparse


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--root", default=None, help="Directory to load (overrides ROOT_DIR)")
    parser.add_argument(
        "--max-file-size",
        type=int,
        default=None,
        help="Reject files larger than this many bytes (overrides MAX_FILE_SIZE)",
    )
    parser.add_argument(
        "--strict-html",
        action="store_true",
        default=None,
        help="Fail on recoverable HTML parse errors instead of logging them",
    )
    parser.add_argument("--log-level", default=None, help="Log level (overrides LOG_LEVEL)")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``sap`` command."""
    parser = argparse.ArgumentParser(
        prog="sap",
        description="sap: serve a single page app from memory.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- sap run ----------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Load the files, then serve them")
    _add_common_arguments(run_parser)
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")

    # -- sap check --------------------------------------------------------
    check_parser = subparsers.add_parser("check", help="Load the files, then exit")
    _add_common_arguments(check_parser)

    args = parser.parse_args(argv)

    from sap.cli._load import resolve_config

    config = resolve_config(args)

    command = args.command or config.mode.value
    if command == "run":
        from sap.cli._run import run_command

        run_command(config)
    else:
        from sap.cli._check import run_check

        run_check(config)

