"""Logging setup for host applications embedding the engine.

The library only creates module loggers; call configure_logging() from the
host entry point to get the standard format.
"""

import logging
from typing import Optional

from swapquote.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(level=log_level, format=LOG_FORMAT)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
