"""
Logging infrastructure.

Provides logger instances for the sqlitem package.
"""
import logging
from typing import Dict, Optional, Union


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_level: Union[int, str] = logging.INFO
_loggers: Dict[str, logging.Logger] = {}


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get logger instance.
    
    Args:
        name: Logger name (usually module name)
        level: Optional level name; defaults to the level set by ``configure_logging``
    
    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(LOG_FORMAT)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(level or _level)
    elif level:
        logger.setLevel(level)
    _loggers[name] = logger
    return logger


def configure_logging(level: Union[int, str]) -> None:
    """
    Set the level of every logger handed out by ``get_logger``.

    Loggers created afterwards start at the same level.
    """
    global _level
    _level = level
    for logger in _loggers.values():
        logger.setLevel(level)
