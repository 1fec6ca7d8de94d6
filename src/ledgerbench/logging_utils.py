"""Runtime logging helpers."""

from __future__ import annotations

import os
import sys
from typing import Optional

import loguru
from loguru import logger

_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {name}:{function}:{line} | "
    "{extra[contract]} | {message}"
)
_CONFIGURED_LEVEL: Optional[str] = None


def _inject_defaults(record: loguru.Record) -> None:
    record["extra"].setdefault("contract", "-")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure process-level logging once per level."""
    global _CONFIGURED_LEVEL
    level = (level or os.getenv("LEDGERBENCH_LOG_LEVEL", "INFO")).upper()
    if level == _CONFIGURED_LEVEL:
        return

    logger.remove()
    logger.configure(patcher=_inject_defaults)
    logger.add(
        sys.stderr,
        level=level,
        format=_FORMAT,
        backtrace=False,
        diagnose=False,
    )
    _CONFIGURED_LEVEL = level
