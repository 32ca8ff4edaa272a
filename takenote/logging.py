"""Logging helpers for the TakeNote core."""

from __future__ import annotations

import logging
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_LOGGER_CONFIGURED = False


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    # getLevelName returns "Level X" for unknown names
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: Union[int, str] = logging.INFO, *, force: bool = False) -> None:
    """Configure the root handler once; ``force`` re-applies the level."""

    global _LOGGER_CONFIGURED
    numeric = _resolve_level(level)
    if _LOGGER_CONFIGURED and not force:
        return

    logging.basicConfig(level=numeric, format=LOG_FORMAT, force=force)
    logging.getLogger("takenote").setLevel(numeric)
    _LOGGER_CONFIGURED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Convenience helper that ensures logging is configured."""

    configure_logging()
    return logging.getLogger(name or "takenote")


__all__ = ["LOG_FORMAT", "configure_logging", "get_logger"]
