"""Logging setup for the command line."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Route ``tagflow`` loggers to stderr through rich.

    ``WARNING`` and above are shown by default, everything with ``verbose``.
    Calling it again replaces the previous handler.
    """
    logger = logging.getLogger("tagflow")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
