"""Logging configuration shared across the project."""
from __future__ import annotations

import logging
import os
from typing import Optional, Union

_LEVEL_ENV = "CODING_LOG_LEVEL"
_DEFAULT_LEVEL = logging.INFO


def _level_from_env() -> Union[int, str]:
    name = os.getenv(_LEVEL_ENV, "").strip().upper()
    if name and isinstance(logging.getLevelName(name), int):
        return name
    return _DEFAULT_LEVEL


def configure(level: Optional[Union[int, str]] = None) -> None:
    """Configure the root logger once; ``CODING_LOG_LEVEL`` sets the default level."""

    if logging.getLogger().handlers:
        return

    logging.basicConfig(
        level=level if level is not None else _level_from_env(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-level logger, configuring logging if required."""

    configure()
    return logging.getLogger(name)
