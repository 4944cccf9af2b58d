"""Logging configuration for nanoCLI.

Installs a console handler (and optionally a file handler) on the root
logger. Handlers added here are tagged so a second call replaces them
without touching handlers that belong to the host process, such as the
ones pytest's caplog installs.
"""

import logging
import sys
from typing import Iterable, Optional, Union

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# httpx logs every request URL at INFO, and the Gemini URL carries the API key
NOISY_LOGGERS = ("httpx", "httpcore")

_HANDLER_TAG = "_nanocli_handler"


def level_from_name(name: Optional[Union[str, int]], default: int = DEFAULT_LOG_LEVEL) -> int:
    """Maps 'debug'/'INFO'/20 to a logging level, falling back to `default`."""
    if name is None or name == "":
        return default
    if isinstance(name, int) and not isinstance(name, bool):
        return name
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


def _tag(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_TAG, True)
    return handler


def remove_own_handlers(logger: logging.Logger) -> None:
    """Detaches and closes handlers previously installed by `setup_logging`."""
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            logger.removeHandler(handler)
            handler.close()


def quiet_loggers(names: Iterable[str] = NOISY_LOGGERS, level: int = logging.WARNING) -> None:
    for name in names:
        logging.getLogger(name).setLevel(level)


def setup_logging(
    log_level: Union[int, str] = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = None,
) -> None:
    """Configures the root logger for the application.

    Args:
        log_level: A logging level or its name ('debug', 'WARNING').
        log_format: The format string for log messages.
        log_file: Optional path to a file for logging output.
    """
    level = level_from_name(log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    remove_own_handlers(root_logger)

    formatter = logging.Formatter(log_format)

    console_handler = _tag(logging.StreamHandler(sys.stdout))
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = _tag(logging.FileHandler(log_file, encoding='utf-8'))
        except OSError as e:
            root_logger.error(f"Failed to set up file logging to {log_file}: {e}")
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

    quiet_loggers()
    root_logger.debug(f"Logging configured. Level={logging.getLevelName(level)}")
