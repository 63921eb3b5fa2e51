import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "onboard"


class LogColors:
    RESET = "\x1b[0m"
    GREY = "\x1b[38;21m"
    GREEN = "\x1b[32m"
    YELLOW = "\x1b[33m"
    RED = "\x1b[31m"
    BOLD_RED = "\x1b[31;1m"
    CYAN = "\x1b[36m"


class ColoredFormatter(logging.Formatter):
    """Console formatter: time | level | logger:function:line - message."""

    LOG_LEVEL_COLORS = {
        logging.DEBUG: LogColors.GREY,
        logging.INFO: LogColors.GREEN,
        logging.WARNING: LogColors.YELLOW,
        logging.ERROR: LogColors.RED,
        logging.CRITICAL: LogColors.BOLD_RED,
    }

    def __init__(self, datefmt="%Y-%m-%d %H:%M:%S"):
        super().__init__(fmt="%(message)s", datefmt=datefmt)

    def format(self, record):
        color = self.LOG_LEVEL_COLORS.get(record.levelno, LogColors.RESET)
        time_str = f"{LogColors.GREEN}{self.formatTime(record, self.datefmt)}{LogColors.RESET}"
        level = f"{color}{record.levelname:<8}{LogColors.RESET}"
        location = f"{LogColors.CYAN}{record.name}:{record.funcName}:{record.lineno}{LogColors.RESET}"
        entry = f"{time_str} | {level} | {location} - {color}{record.getMessage()}{LogColors.RESET}"
        if record.exc_info:
            if not record.exc_text:
                record.exc_text = self.formatException(record.exc_info)
            entry += f"\n{LogColors.RED}{record.exc_text}{LogColors.RESET}"
        return entry


def setup_logging(level: Optional[str] = None, log_dir: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger. Safe to call more than once: existing
    handlers are replaced rather than duplicated.
    """
    level = (level or os.environ.get("ONBOARD_LOG_LEVEL") or "INFO").upper()
    log_dir = log_dir or os.environ.get("ONBOARD_LOG_DIR")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if logger.hasHandlers():
        logger.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(ColoredFormatter())
    logger.addHandler(console)

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path / "onboard.log", maxBytes=5 * 1024 * 1024, backupCount=10, encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(
            fmt="{asctime} | {levelname} | {name}:{funcName}:{lineno} - {message}",
            datefmt="%Y-%m-%d %H:%M:%S",
            style="{",
        ))
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
