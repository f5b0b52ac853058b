"""
Logging configuration for justsynth.

The core runs on the thread that receives MIDI events, so log records carry
millisecond timestamps to make note-on/note-off ordering readable.

Copyright (c) 2026 justsynth contributors

MIT License
"""

import logging
import sys
from typing import Optional, TextIO, Union

ROOT_LOGGER_NAME = "justsynth"

DEFAULT_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"

# Marks handlers installed by set_global_logging so repeated calls replace them
_HANDLER_TAG = "_justsynth_handler"


def set_global_logging(
    level: Union[str, int] = "INFO",
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure logging for justsynth.

    Only the ``justsynth`` logger hierarchy is touched; the root logger of a
    host application is left alone. Calling this again replaces the handlers
    installed by the previous call.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
               or numeric level
        format_string: Custom format string for log messages
        log_file: Optional file path to write logs to
        stream: Stream for console output (default: sys.stdout)

    Returns:
        Configured package logger
    """
    if format_string is None:
        format_string = DEFAULT_FORMAT

    if isinstance(level, str):
        log_level = getattr(logging, level.upper(), logging.INFO)
    else:
        log_level = int(level)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            logger.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    formatter = logging.Formatter(format_string, datefmt="%H:%M:%S")
    for handler in handlers:
        setattr(handler, _HANDLER_TAG, True)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(log_level)
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance for the given name.

    Args:
        name: Logger name, usually ``__name__`` (defaults to 'justsynth')

    Returns:
        Logger instance
    """
    if name is None:
        name = ROOT_LOGGER_NAME
    return logging.getLogger(name)
