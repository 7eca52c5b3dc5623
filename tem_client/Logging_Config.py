# Logging_Config.py
# Description: Configuration for logging
#
# Imports
import logging
import os
import sys
from typing import Optional
#
# 3rd-Party Imports
from loguru import logger
#
# Local Imports
#
########################################################################################################################
#
# Functions:

DEFAULT_APP_LOG_PATH = '~/.local/tem_client/Logs/tem_client.log'

# Third-party std-logging loggers that are too chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def _ensure_log_dir_exists(file_path: str) -> str:
    """Ensure the directory for the log file exists."""
    expanded_path = os.path.expanduser(file_path)
    log_dir = os.path.dirname(expanded_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    return expanded_path


class StdLoggingToLoguru(logging.Handler):
    """Forwards records from standard-library loggers (httpx, asyncio) into the loguru sinks."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(exception=record.exc_info).log(level, record.getMessage())


def setup_logger(
    log_level: str = "INFO",
    log_file: Optional[str] = DEFAULT_APP_LOG_PATH,
    console_format: str = "{time:YYYY-MM-DD HH:mm:ss} - {level} - {message}",
):
    """
    Sets up Loguru sinks for the console and an optional rotating application log.

    Args:
        log_level (str): The minimum log level to output (e.g., "DEBUG", "INFO").
        log_file (Optional[str]): Path for the text log file. If None, this sink is disabled.
        console_format (str): The format string for console output.

    Returns:
        The configured logger instance.
    """
    # Start with a clean slate
    logger.remove()

    # Console sink goes to stderr so command output on stdout stays clean
    logger.add(
        sys.stderr,
        level=log_level.upper(),
        format=console_format,
    )

    if log_file:
        path = _ensure_log_dir_exists(log_file)
        logger.add(
            path,
            level=log_level.upper(),
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            rotation="10 MB",
            retention="7 days",
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )
        logger.info(f"Application logs will be written to: {path}")

    root_logger = logging.getLogger()
    if not any(isinstance(h, StdLoggingToLoguru) for h in root_logger.handlers):
        root_logger.addHandler(StdLoggingToLoguru())
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger

#
# End of Logging_Config.py
########################################################################################################################
