"""Logging setup for the crm_pages command line."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "WARNING") -> None:
    """Configure the root logger once for CLI runs.

    Library code only ever calls ``logging.getLogger(__name__)``; handlers
    are installed here so embedding applications keep control of output.
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, force=True)
    # urllib3 logs each connection at DEBUG.
    logging.getLogger("urllib3").setLevel(max(logging.INFO, logging.root.level))


__all__ = ["LOG_FORMAT", "setup_logging"]
