# autograde/core/logger.py
import logging
import sys

from autograde.core.config import CONFIG

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s [%(threadName)s] - %(message)s"

_logger = logging.getLogger("autograde")
if not _logger.handlers:
    _logger.setLevel(CONFIG.LOG_LEVEL.upper())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    _logger.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Child of the package logger, e.g. get_logger("job_queue") -> autograde.job_queue."""
    if name:
        return _logger.getChild(name)
    return _logger
