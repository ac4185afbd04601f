from __future__ import annotations

import sys

from loguru import logger

from ad_overlay.config import settings

_configured_level: str | None = None


def configure_logging(level: str | None = None) -> None:
    """
    Replace loguru's default sink with a single stderr sink.
    Repeated calls with the same level are no-ops.
    """
    global _configured_level
    lvl = (level or settings.log_level or "INFO").upper()
    if _configured_level == lvl:
        return
    logger.remove()
    logger.add(sys.stderr, level=lvl, format="[{time:YYYY-MM-DD HH:mm:ss}] {level} {name}: {message}")
    _configured_level = lvl
