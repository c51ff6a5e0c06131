"""Centralised loguru configuration."""
from __future__ import annotations

import sys
from typing import Optional

from loguru import logger

from config.settings import get_runtime_settings

LOG_FORMAT = "{time:HH:mm:ss} | {level: <8} | {name} | {message}"

_configured = False


def configure_logging(level: Optional[str] = None, force: bool = False) -> None:
    """Install a single stderr sink. Repeated calls are no-ops unless forced."""
    global _configured
    if _configured and not force:
        return

    level = (level or get_runtime_settings().log_level).upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)
    _configured = True
