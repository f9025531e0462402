"""
Logging configuration.

Importing this module configures the root logger once for the whole
application. Modules log through ``logging.getLogger(__name__)``.
"""

import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a console handler."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )
    # httpx logs every request at INFO, which floods the log during GetFeature
    logging.getLogger("httpx").setLevel(logging.WARNING)


setup_logging(settings.LOG_LEVEL)
