# logger.py
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

_DEFAULT_MAX_MB = int(os.getenv("LOG_MAX_MB", "5"))
_DEFAULT_BACKUPS = int(os.getenv("LOG_BACKUPS", "5"))

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(name: str = "tradejournal",
                 level: Union[str, int] = "INFO",
                 log_file: Optional[str] = None,
                 to_console: bool = True) -> logging.Logger:
    """
    Configure the package logger with a console handler and, when
    ``log_file`` is given, a rotating file handler.
    Calling it again for the same name returns the configured logger
    without adding duplicate handlers.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=_DEFAULT_MAX_MB * 1024 * 1024,
            backupCount=_DEFAULT_BACKUPS,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    if to_console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        stream_handler.setLevel(level)
        logger.addHandler(stream_handler)

    # requests/urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return logger
