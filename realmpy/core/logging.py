"""Logging utilities for realmpy modules."""

import logging
from enum import Enum
from typing import Optional


ROOT_LOGGER_NAME = 'realmpy'


class LogLevel(Enum):
    """Log levels accepted by configure_logging."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEBUG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger that automatically inherits from root logger.
    
    This ensures that loggers work with basicConfig() without needing
    explicit setup_logging() calls. The logger will:
    - Propagate to root logger (default behavior)
    - Only set a default level if root logger has no handlers
    
    Args:
        name: Sub-logger name under ``realmpy`` (e.g. ``'auth'``)
        
    Returns:
        Configured logger instance
    """
    full_name = f"{ROOT_LOGGER_NAME}.{name}" if name else ROOT_LOGGER_NAME
    logger = logging.getLogger(full_name)
    logger.propagate = True
    
    # Only set default level if root logger has no handlers
    # (i.e., basicConfig hasn't been called yet)
    root_logger = logging.getLogger()
    if not root_logger.handlers and logger.level == logging.NOTSET:
        logger.setLevel(logging.WARNING)
    
    return logger


def configure_logging(
    level: LogLevel = LogLevel.INFO,
    log_file: Optional[str] = None,
    enable_console: bool = True
) -> logging.Logger:
    """
    Attach handlers to the ``realmpy`` logger.
    
    Previously attached realmpy handlers are removed first, so calling
    this twice does not duplicate output.
    
    Args:
        level: Minimum level to emit
        log_file: Optional path of a file to log into
        enable_console: Whether to log to stderr
        
    Returns:
        The configured ``realmpy`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    
    logger.setLevel(level.value)
    fmt = DEBUG_FORMAT if level == LogLevel.DEBUG else DEFAULT_FORMAT
    
    if enable_console:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(fmt))
        logger.addHandler(console)
    
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(file_handler)
    
    return logger
