"""Logging setup shared by scripts and tests."""

from __future__ import annotations

import logging
import sys

from .config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int | None = None, *, verbose: bool = False) -> logging.Logger:
    """Configure the root logger once; later calls only adjust the level."""
    if verbose:
        resolved = logging.DEBUG
    elif level is not None:
        resolved = level
    else:
        resolved = get_settings().log_level
    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    root = logging.getLogger()
    root.setLevel(resolved)
    return logging.getLogger("bizops")
