"""
Logging configuration for the service.

Never logs bearer tokens or request bodies.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> None:
    """
    Configure process-wide logging.

    Args:
        level: The log level name (DEBUG, INFO, WARNING, ERROR).
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )

    # Request lines are already emitted by the server process
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
