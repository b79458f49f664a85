"""
Logging setup for the viewer scripts.
"""
import logging
import sys
from typing import Optional

from colorama import Fore, Style, init

LEVEL_COLORS = {
    logging.DEBUG: Style.DIM,
    logging.INFO: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED + Style.BRIGHT,
}

FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATEFMT = '%H:%M:%S'


class ColorFormatter(logging.Formatter):
    """Colors the level name on the console only."""

    def format(self, record):
        color = LEVEL_COLORS.get(record.levelno, "")
        plain = record.levelname
        record.levelname = f"{color}{plain}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def setupLogging(level: int | str = logging.INFO, logFile: Optional[str] = None) -> logging.Logger:
    """
    Configures the root logger: colored stdout handler plus an optional file.
    Calling it again replaces the previous handlers.
    """
    init()
    logger = logging.getLogger()
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(ColorFormatter(FORMAT, datefmt=DATEFMT))
    logger.addHandler(console)

    if logFile:
        fileHandler = logging.FileHandler(logFile, mode='w', encoding='utf-8')
        fileHandler.setLevel(level)
        fileHandler.setFormatter(logging.Formatter(FORMAT, datefmt=DATEFMT))
        logger.addHandler(fileHandler)

    logger.debug("Logging initialized.")
    return logger
