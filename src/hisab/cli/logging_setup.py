"""Logging configuration for the command line."""

import logging

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def configure_logging(level_name: str = "WARNING") -> None:
    """Send log records to stderr at the requested level.

    Called once per CLI invocation; a second call only adjusts the level.
    """
    level = getattr(logging, str(level_name).upper(), logging.WARNING)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    else:
        root.setLevel(level)
    # SQLAlchemy's own engine logging stays quiet unless debugging
    logging.getLogger("sqlalchemy").setLevel(max(level, logging.WARNING))
