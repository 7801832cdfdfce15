"""Central logging setup for the project."""
from __future__ import annotations
import logging
import os
import sys


def resolve_level(default: str = "INFO") -> int:
    """Return the logging level named by `LOG_LEVEL`, falling back to `default`."""
    name = os.getenv("LOG_LEVEL", default).strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(level: int | None = None) -> None:
    """
    Configure root logger with sane defaults.

    Args:
        level: Logging level. Defaults to `LOG_LEVEL` from the environment.
    """
    handler = logging.StreamHandler(sys.stdout)
    fmt = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level if level is not None else resolve_level())
