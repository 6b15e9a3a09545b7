"""Logging for xlxc: rich console output plus an optional log file.

Module loggers carry no handlers or level of their own. Records propagate to
the ``xlxc`` package logger, whose level (INFO, or DEBUG when verbose) decides
what reaches both the console and the log file.
"""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console()

PACKAGE_LOGGER = "xlxc"
DEFAULT_LOG_FILE = Path("/var/log/xlxc/xlxc.log")
FALLBACK_LOG_FILE = Path("/tmp/xlxc.log")
FILE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

_file_handler: Optional[logging.FileHandler] = None


def _package_logger() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for an xlxc module (typically ``__name__``)."""
    _package_logger()
    return logging.getLogger(name)


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> Path:
    """Send xlxc logs to a file as well as the console.

    Calling it again replaces the previous log file.

    Args:
        log_file: Path to log file (defaults to /var/log/xlxc/xlxc.log,
            or /tmp/xlxc.log if that directory cannot be created)
        verbose: Log DEBUG records to the console and the file

    Returns:
        The log file in use
    """
    global _file_handler

    package = _package_logger()
    package.setLevel(logging.DEBUG if verbose else logging.INFO)

    target = Path(log_file) if log_file else DEFAULT_LOG_FILE
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        target = FALLBACK_LOG_FILE

    if _file_handler is not None:
        package.removeHandler(_file_handler)
        _file_handler.close()

    _file_handler = logging.FileHandler(target)
    _file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    package.addHandler(_file_handler)

    package.debug(f"Logging to {target}")
    return target
