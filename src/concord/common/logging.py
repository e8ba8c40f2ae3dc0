"""Logging setup of the concord command line."""

from __future__ import annotations

import logging
from typing import Final

LOG_FORMAT: Final = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
# HTTP client and cache libraries which log every single request
LIBRARY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "hishel", "httpx_retries")


def configure_logging(
    *,
    level: int = logging.INFO,
    library_level: int | None = None,
    force: bool = False,
) -> None:
    """Initialise the root logger for lookups started from the command line.

    Library loggers stay at WARNING or above unless ``library_level`` is given, so debug
    output shows the lookup stages and snapshot decisions instead of HTTP traffic.
    Pass ``force=True`` to replace an existing configuration.
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    quiet_level = library_level if library_level is not None else max(level, logging.WARNING)
    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
