"""
Shared utilities.
"""
import logging
import os

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_configured = False


def get_logger(name: str) -> logging.Logger:
    """Get a module logger, configuring the root handler on first use."""
    global _configured
    if not _configured:
        level = os.environ.get("LOG_LEVEL", "INFO").upper()
        logging.basicConfig(level=level, format=_LOG_FORMAT)
        _configured = True
    return logging.getLogger(name)
