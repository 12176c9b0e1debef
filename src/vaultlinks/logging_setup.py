from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


APP_NAME = "vaultlinks"


def setup_logging(level: str | int = "WARNING") -> logging.Logger:
    """Configure the package logger.

    Records go to stderr through Rich so that report output on stdout (JSON in
    particular) is never interleaved with log lines. Calling this again only
    adjusts the level.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level!r}")
        level = resolved

    logger = logging.getLogger(APP_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Prevent duplicate handlers on repeated CLI invocations in one process.
    if not logger.handlers:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    logger.debug("Logging initialized. level=%s", logging.getLevelName(level))
    return logger
