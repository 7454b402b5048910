"""``python -m sap`` entry point."""

from sap.cli import main

main()
