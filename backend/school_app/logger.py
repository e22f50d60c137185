import logging

from school_app.core.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def get_logger(name: str = "school_app") -> logging.Logger:
    """
    Returns a named logger, configuring the root handler on first use.
    """
    global _configured
    if not _configured:
        logging.basicConfig(
            level=LOG_LEVEL,
            format=LOG_FORMAT,
            handlers=[logging.StreamHandler()],
        )
        _configured = True
    return logging.getLogger(name)
