"""Logging setup shared by the API and the CLI."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

_HANDLER_NAME = "audfx"


def setup_logging(level: str | int = logging.INFO, stream: TextIO | None = None) -> None:
    """Configure logging to output to stdout with proper formatting.

    Calling it again replaces the handler installed by a previous call.
    """
    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.set_name(_HANDLER_NAME)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper() if isinstance(level, str) else level)

    # Request lines from the HTTP client are noisy at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
