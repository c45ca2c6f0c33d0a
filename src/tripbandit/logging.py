from __future__ import annotations

import logging
from typing import IO

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# Third-party loggers held at WARNING or above; urllib3 logs each request made by requests.
_CHATTY_LOGGERS = ("urllib3",)


def configure_tripbandit_logging(*, level: int = logging.INFO, stream: IO[str] | None = None) -> None:
    """
    Console logging for command-line runs.

    Called by the CLI only. When the application (or pytest) already set up
    handlers, only the "tripbandit" level is adjusted.
    """
    pkg_logger = logging.getLogger("tripbandit")
    pkg_logger.setLevel(level)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if logging.getLogger().handlers or pkg_logger.handlers:
        return

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    pkg_logger.addHandler(handler)
    pkg_logger.propagate = False


__all__ = ["LOG_DATE_FORMAT", "LOG_FORMAT", "configure_tripbandit_logging"]
