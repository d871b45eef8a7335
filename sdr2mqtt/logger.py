"""
Logging utilities for the sdr2mqtt package.

A single package logger (``sdr2mqtt``) is configured on first import with a
colorized stdout handler. Modules log through it directly; the command line
adjusts its level with :func:`set_log_level`.
"""

import logging
import sys
from typing import Union


class ColorFormatter(logging.Formatter):
    """
    Formatter that wraps each record in an ANSI color chosen by its level.

    Colors are disabled when the handler stream is not a terminal, so that
    redirected output (files, journald) stays readable.
    """

    CYAN = "\x1b[36;20m"
    GREEN = "\x1b[32;20m"
    YELLOW = "\x1b[33;20m"
    RED = "\x1b[31;20m"
    BOLD_RED = "\x1b[31;1m"
    RESET = "\x1b[0m"
    FORMAT = "%(asctime)s [%(levelname)s] [%(name)s/%(filename)s] %(message)s"
    DATEFMT = "%Y-%m-%d %H:%M:%S"

    LEVEL_COLORS = {
        logging.DEBUG: CYAN,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def __init__(self, use_color: bool = True):
        super().__init__(self.FORMAT, datefmt=self.DATEFMT)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if not self.use_color:
            return message
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        return f"{color}{message}{self.RESET}"


def get_logger(name: str = "sdr2mqtt") -> logging.Logger:
    """
    Returns the package logger, attaching a stdout handler on first use.

    Args:
        name: Logger name. Children of ``sdr2mqtt`` propagate to the package
            handler and are left unconfigured.

    Returns:
        A configured logging.Logger instance.
    """
    logger = logging.getLogger(name)

    if name == "sdr2mqtt" and not logger.handlers:
        logger.setLevel(logging.INFO)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ColorFormatter(use_color=sys.stdout.isatty()))
        logger.addHandler(handler)

    return logger


logger = get_logger()


def set_log_level(level: Union[int, str]) -> None:
    """
    Sets the level of the package logger.

    Args:
        level: logging.DEBUG, logging.INFO, etc. or a name such as "debug".

    Raises:
        ValueError: If a level name is not recognized.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    logger.setLevel(level)
