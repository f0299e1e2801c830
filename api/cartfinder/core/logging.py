from __future__ import annotations

import logging
import sys

from .config import get_settings

# Client libraries that log every deal-database and Redis round trip.
NOISY_LOGGERS = ("httpx", "httpcore", "redis")


def configure_logging() -> None:
    """Log CartFinder records to stdout; verbose outside production.

    Optimizer timings are logged at DEBUG, so they only show up in
    development and test environments.
    """
    settings = get_settings()
    level = logging.INFO if settings.environment == "production" else logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["NOISY_LOGGERS", "configure_logging"]
