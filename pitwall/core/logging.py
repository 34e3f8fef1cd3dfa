"""Logging setup."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once for the process."""

    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


__all__ = ["LOG_FORMAT", "configure_logging"]
