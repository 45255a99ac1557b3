"""
Logging Setup
=============

Single place to configure log output for the sync client.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure the ``fitform_sync`` logger hierarchy.

    Args:
        level: Log level name, e.g. "DEBUG" or "INFO"
    """
    logger = logging.getLogger("fitform_sync")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    # requests/urllib3 connection chatter is only useful when debugging
    logging.getLogger("urllib3").setLevel(logging.WARNING)
