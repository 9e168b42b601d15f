"""
Logging Utilities

Provides logging configuration for the annotation library:
- Configurable log levels (DEBUG, INFO, WARNING, ERROR)
- Optional file output
- Debug mode with verbose output

Log Format:
    %(asctime)s - %(name)s - %(levelname)s - %(message)s

Loggers:
    - <package>: Root logger of the hierarchy (the package import name)
    - <package>.core.*: Data model, graph and wiggle evaluation
    - <package>.codec.*: Encoding and decoding

Library modules only call logging.getLogger(__name__); nothing is emitted
until an application calls setup_logging (or configures logging itself).
"""

import logging
import os
import sys
from typing import Optional

# Package root; this module lives in <package>.utils.logging
ROOT_LOGGER_NAME = __name__.rsplit('.', 2)[0]
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_root_logger = logging.getLogger(ROOT_LOGGER_NAME)
_root_logger.addHandler(logging.NullHandler())

_handlers = []


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    debug: bool = False,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the package logger hierarchy.

    Calling it again replaces handlers installed by a previous call.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path for log output
        debug: Enable debug mode (overrides level with DEBUG)
        format_string: Custom format string for log messages

    Returns:
        Configured root logger

    Example:
        >>> setup_logging(level='DEBUG')
        >>> logger = get_logger('core.graph')
        >>> logger.debug('Inserted feature gene1')
    """
    for handler in _handlers:
        _root_logger.removeHandler(handler)
        handler.close()
    _handlers.clear()

    log_level = logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO)
    _root_logger.setLevel(log_level)

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)
    _handlers.append(console_handler)

    if log_file:
        try:
            os.makedirs(os.path.dirname(log_file) or '.', exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            file_handler.setLevel(log_level)
            _handlers.append(file_handler)
        except OSError as e:
            _root_logger.warning(f'Failed to create log file {log_file}: {e}')

    for handler in _handlers:
        _root_logger.addHandler(handler)

    return _root_logger


def get_logger(name: str = ROOT_LOGGER_NAME, level: Optional[str] = None) -> logging.Logger:
    """
    Get a logger in the package hierarchy.

    Args:
        name: Logger name; names outside the hierarchy are nested under it
        level: Optional log level override

    Returns:
        logging.Logger instance
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + '.'):
        name = f'{ROOT_LOGGER_NAME}.{name}'
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger
