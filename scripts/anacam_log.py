"""
Logging utilities for AnaCam.

All modules log under the 'anacam' root logger:

    from anacam_log import get_logger
    logger = get_logger(__name__)

setup_logger() is called once by the app entry point. Streamlit re-executes
the script on every interaction, so repeated calls only update the level.
"""

import logging
import logging.handlers
import sys
from pathlib import Path

ROOT_LOGGER_NAME = 'anacam'

MAX_LOG_BYTES = 2 * 1024 * 1024
BACKUP_COUNT = 3

LOG_FORMAT = '%(levelname)s | %(asctime)s | %(shortname)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _short_name(name: str) -> str:
    """'anacam.anacam_calc' -> 'anacam_calc', '__main__' -> 'main'."""
    if name == '__main__':
        return 'main'
    prefix = ROOT_LOGGER_NAME + '.'
    if name.startswith(prefix):
        return name[len(prefix):]
    return name


class ShortNameFormatter(logging.Formatter):

    def format(self, record):
        record.shortname = _short_name(record.name)
        return super().format(record)


class ColoredFormatter(ShortNameFormatter):
    """Console formatter with ANSI colored level names."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        # Work on a copy so other handlers still see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


_initialized = False


def setup_logger(level=logging.INFO, log_file=None, use_color=True):
    """
    Configure the 'anacam' root logger.

    Parameters:
        level: console log level (int or level name)
        log_file: optional path for a rotating file log (always DEBUG)
        use_color: colorize console level names

    Returns:
        the configured root logger
    """
    global _initialized

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER_NAME)

    if _initialized:
        set_log_level(level)
        return logger

    logger.setLevel(logging.DEBUG if log_file else level)
    logger.propagate = False

    formatter_cls = ColoredFormatter if use_color else ShortNameFormatter
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter_cls(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=MAX_LOG_BYTES,
            backupCount=BACKUP_COUNT,
            encoding='utf-8',
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(ShortNameFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    _initialized = True
    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Return a child of the 'anacam' root logger, e.g. 'anacam.anacam_data'."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + '.'):
        return logging.getLogger(name)
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def set_log_level(level: int) -> None:
    """Change the console level; rotating file handlers stay at DEBUG."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    has_file = False
    for handler in root.handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            has_file = True
            continue
        handler.setLevel(level)
    root.setLevel(logging.DEBUG if has_file else level)
