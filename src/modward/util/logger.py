"""
Logging setup for Modward.

All loggers hang off a single ``modward`` parent logger. The parent owns
two handlers, configured once:

- a console handler that prints through prompt_toolkit, coloured by level
  when stderr is a terminal;
- a size-rotated file handler under ``logs/`` (``MODWARD_LOG_DIR``
  overrides the location).

``MODWARD_LOG_LEVEL`` sets the console level (default INFO); the file
always receives DEBUG.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI

ROOT_LOGGER_NAME = "modward"

LOGS_DIR: Path = Path(os.getenv("MODWARD_LOG_DIR") or Path(__file__).parents[3] / "logs").resolve()
LOG_FILENAME = "modward.log"
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}
RESET = "\033[0m"

# Third-party loggers clamped to ERROR
NOISY_LOGGERS = ("discord", "discord.gateway", "discord.client", "discord.http", "websockets", "aiohttp", "aiosqlite")


class LevelColorFormatter(logging.Formatter):
    """Wraps each formatted record in the ANSI colour of its level."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        return f"{color}{text}{RESET}" if color else text


class PromptToolkitHandler(logging.Handler):
    """Console handler that writes through prompt_toolkit so ANSI colours render everywhere."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            print_formatted_text(ANSI(self.format(record)))
        except Exception:
            self.handleError(record)


def _console_level() -> int:
    name = (os.getenv("MODWARD_LOG_LEVEL") or "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _use_color() -> bool:
    try:
        return sys.stderr.isatty()
    except (AttributeError, ValueError):
        return False


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if root.handlers:
        return root

    root.setLevel(logging.DEBUG)
    root.propagate = False

    console = PromptToolkitHandler()
    console.setLevel(_console_level())
    console.setFormatter(
        LevelColorFormatter(LOG_FORMAT, DATE_FORMAT) if _use_color() else logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    )
    root.addHandler(console)

    try:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            LOGS_DIR / LOG_FILENAME,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as exc:
        root.warning("File logging disabled, cannot write to %s: %s", LOGS_DIR, exc)
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        root.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR)

    return root


def get_logger(name: str) -> logging.Logger:
    """Return the ``modward.<name>`` logger, configuring logging on first use."""
    _configure_root()
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def handle_exception(exception_type, exception_instance, exception_traceback) -> None:
    """``sys.excepthook`` replacement that logs uncaught exceptions.

    KeyboardInterrupt is passed to the default hook so Ctrl+C still exits.
    """
    if issubclass(exception_type, KeyboardInterrupt):
        sys.__excepthook__(exception_type, exception_instance, exception_traceback)
        return
    logging.getLogger(ROOT_LOGGER_NAME).critical(
        "Uncaught exception",
        exc_info=(exception_type, exception_instance, exception_traceback),
    )
