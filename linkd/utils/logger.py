"""
Logger configuration for linkd.
Writes detailed logs to <LOG_DIR>/app.log and warnings to stdout.
"""

import logging
import os
import sys

from linkd.config import get_settings

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"


def _file_handler(log_dir: str, level: int) -> logging.Handler:
    os.makedirs(log_dir, exist_ok=True)
    handler = logging.FileHandler(os.path.join(log_dir, "app.log"), encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.WARNING)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    return handler


def setup_logger(name: str = "linkd", level: str = "") -> logging.Logger:
    """Set up and return the shared linkd logger.

    Child loggers (``linkd.scraper`` etc.) propagate to its handlers.

    Args:
        name: Logger name identifier.
        level: Level name; defaults to LOG_LEVEL from settings.

    Returns:
        Configured logging.Logger instance.
    """
    settings = get_settings()
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    root = logging.getLogger(name)
    root.setLevel(log_level)
    if not root.handlers:
        root.addHandler(_file_handler(os.path.abspath(settings.log_dir), log_level))
        root.addHandler(_console_handler())
    return root


def get_logger(component: str) -> logging.Logger:
    """Child of the shared logger for one component."""
    return logger.getChild(component)


logger = setup_logger()
