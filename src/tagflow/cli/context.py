"""State shared by all CLI commands."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape

from tagflow.config import load_config
from tagflow.exceptions import TagflowError
from tagflow.log import setup_logging

if TYPE_CHECKING:
    from collections.abc import Iterator

    from tagflow.config.models import TagflowConfig

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Global options, resolved lazily into a configuration per command."""

    config_path: Path | None = None
    tag_pattern: str | None = None
    verbose: bool = False
    cwd: Path = field(default_factory=Path.cwd)
    console: Console = field(default_factory=Console)
    err_console: Console = field(default_factory=lambda: Console(stderr=True))

    def load_config(self, **overrides: Any) -> TagflowConfig:
        """Effective configuration with global flags and ``overrides`` applied."""
        flags: dict[str, Any] = dict(overrides)
        if self.tag_pattern is not None:
            flags["tag_pattern"] = self.tag_pattern
        if self.verbose:
            flags["verbose"] = True

        config = load_config(self.config_path, cwd=self.cwd, overrides=flags)
        if config.verbose and not self.verbose:
            # Verbosity enabled through a config file or TAGFLOW_VERBOSE
            setup_logging(verbose=True)
        logger.debug("Configuration loaded (tag pattern %s)", config.tag_pattern)
        return config


@contextmanager
def reporting_errors(err_console: Console) -> Iterator[None]:
    """Turn tagflow errors into a red message and exit status 1."""
    try:
        yield
    except TagflowError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}", highlight=False, soft_wrap=True)
        raise SystemExit(1) from e
