"""Logging setup shared by the CLI and the API."""

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL_ENV_VAR = "RETENTION_LOG_LEVEL"


def configure_logging(level: str | int | None = None) -> None:
    """
    Configure root logging.

    Args:
        level: Level name or number; defaults to RETENTION_LOG_LEVEL, then INFO
    """
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV_VAR, "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("build_retention").setLevel(level)
