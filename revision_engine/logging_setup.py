"""Loguru sink configuration shared by the CLI and embedding applications."""

import sys

from loguru import logger

from revision_engine.config import settings


def configure_logging(level: str = None) -> None:
    """Replace loguru's default sink with a single stderr sink."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.log_level).upper(),
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
