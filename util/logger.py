# util/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from config.settings import settings
from util.enums import Color

# sentence-transformers and httpx report through warnings.*
logging.captureWarnings(True)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_LEVEL_COLORS = {
    logging.DEBUG: Color.CYAN,
    logging.INFO: Color.GREEN,
    logging.WARNING: Color.YELLOW,
    logging.ERROR: Color.RED,
    logging.CRITICAL: Color.MAGENTA,
}

# third-party chatter kept out of INFO
_QUIET = ("httpx", "httpcore", "sentence_transformers", "urllib3", "filelock")


class ConsoleFormatter(logging.Formatter):
    """Colours the level name only; the record itself is left untouched for other handlers."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        color = _LEVEL_COLORS.get(record.levelno)
        if color is None:
            return line
        return line.replace(record.levelname, f"{color}{record.levelname}{Color.RESET}", 1)


def _console(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ConsoleFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _rotating_file(level: int) -> logging.Handler:
    os.makedirs(settings.LOG_DIR, exist_ok=True)
    handler = RotatingFileHandler(
        os.path.join(settings.LOG_DIR, settings.LOG_FILE_NAME),
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def init_logger() -> logging.Logger:
    """
    Configure the root logger once per process and return the app logger.

    - stdout always, coloured levels.
    - <LOG_DIR>/<LOG_FILE_NAME> with size rotation when LOG_TO_FILE is set.
    - Module loggers (logging.getLogger(__name__)) inherit all of it.
    """
    app_logger = logging.getLogger(settings.LOGGER_NAME)
    root = logging.getLogger()
    if getattr(root, "_isha_inited", False):
        return app_logger

    level = logging.getLevelName((settings.LOG_LEVEL or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO
    root.setLevel(level)

    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(_console(level))
    if settings.LOG_TO_FILE:
        root.addHandler(_rotating_file(level))

    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)
    for name in ("uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.INFO)

    root._isha_inited = True  # type: ignore[attr-defined]
    app_logger.debug(
        "logger.init level=%s file=%s", logging.getLevelName(level), settings.LOG_TO_FILE
    )
    return app_logger
