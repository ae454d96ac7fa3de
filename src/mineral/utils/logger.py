"""
Logging configuration
"""

import logging
import os
import sys
from typing import Iterable, Optional

LOG_FORMAT = '[%(asctime)s] %(levelname)s - %(name)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# HTTP and serial traffic, shown on the kiosk console in development mode
LIBRARY_LOGGERS = ('urllib3', 'serial')


def setup_logger(name: Optional[str] = 'mineral', level: str = 'INFO',
                 log_file: Optional[str] = None,
                 libraries: Iterable[str] = ()) -> logging.Logger:
    """
    Setup kiosk logger with console and optional file output

    Every module logs through ``logging.getLogger(__name__)``, so configuring
    the ``mineral`` logger once at startup covers the pollers, the order
    workflows and the HTTP clients. The kiosk logger does not propagate, so
    a root handler installed by the UI toolkit won't print each line twice.

    Args:
        name: Logger name (None for root logger)
        level: Log level ('DEBUG', 'INFO', 'WARNING', 'ERROR')
        log_file: Optional log file path; its directory is created
        libraries: Third-party loggers to route through the same handlers

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))
    if name:
        logger.propagate = False

    # Clear existing handlers
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for library in libraries:
        library_logger = logging.getLogger(library)
        library_logger.setLevel(logger.level)
        library_logger.propagate = False
        library_logger.handlers = list(handlers)

    return logger


def configure_logging(config) -> logging.Logger:
    """
    Configure the kiosk logger from a KioskConfig

    Development kiosks also log urllib3 and pyserial activity.
    """
    libraries = LIBRARY_LOGGERS if config.development else ()
    return setup_logger('mineral', config.log_level, config.log_file, libraries=libraries)
