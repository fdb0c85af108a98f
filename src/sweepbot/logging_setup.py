"""Logging configuration shared by the CLI and services."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_CONFIGURED = False


def configure_logging(level: str = "INFO", console: Console | None = None) -> None:
    """
    Route the standard logging tree through rich.

    Calling this more than once only updates the level.
    """
    global _CONFIGURED
    root = logging.getLogger()
    root.setLevel(level.upper())
    if _CONFIGURED:
        return

    handler = RichHandler(console=console or Console(stderr=True), show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)

    # openml is chatty at INFO about cache hits
    logging.getLogger("openml").setLevel(logging.WARNING)
    _CONFIGURED = True
