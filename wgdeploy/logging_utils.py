"""Logging helpers for DeployWireguard."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

BLUE = "\033[34m"
GREEN = "\033[32m"
RED = "\033[31m"
YELLOW = "\033[33m"
RESET = "\033[0m"

_ROOT_LOGGER = "wgdeploy"


def _build_formatter() -> logging.Formatter:
    return logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def setup_logging(
    log_dir: str | Path,
    log_name: str = "deploy-wireguard",
    level: int = logging.INFO,
) -> logging.Logger:
    """Initialize file logging for a deployment run.

    Parameters
    ----------
    log_dir:
        Directory where log files will be stored.
    log_name:
        Base name of the log file without extension.
    level:
        Threshold for the ``wgdeploy`` logger.

    Returns
    -------
    logging.Logger
        Configured ``wgdeploy`` logger instance.

    Console output is produced by :func:`logwrite`, so only a file handler is
    attached here.  A log directory that cannot be created is reported and
    skipped; logging must never block the deployment.
    """

    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    log_directory = Path(log_dir)
    log_file = log_directory / f"{log_name}.log"

    # Avoid attaching duplicate handlers in case of repeated initialization.
    existing_files = {
        getattr(handler, "baseFilename", None)
        for handler in logger.handlers
        if isinstance(handler, logging.FileHandler)
    }
    if os.path.abspath(log_file) in existing_files:
        return logger

    try:
        log_directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as exc:
        print(_colorize(f"⚠️ Cannot write log file {log_file}: {exc}", YELLOW))
        logger.addHandler(logging.NullHandler())
        return logger

    file_handler.setFormatter(_build_formatter())
    logger.addHandler(file_handler)
    logger.debug("Logging initialized", extra={"log_file": str(log_file)})
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a namespaced logger under the ``wgdeploy`` hierarchy."""

    base = logging.getLogger(_ROOT_LOGGER)
    if not name:
        return base
    if name == _ROOT_LOGGER or name.startswith(_ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return base.getChild(name)


def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def enable_windows_ansi() -> None:
    """Turn on VT escape processing in a classic Windows console."""

    if os.name == "nt":
        os.system("")


def _colorize(message: str, color: str) -> str:
    """Return ``message`` wrapped in ANSI color codes when the console supports it."""

    if not _use_color():
        return message
    return f"{color}{message}{RESET}"


def logwrite(message: str, *, color: str | None = None, level: int = logging.INFO) -> None:
    """Print ``message`` (optionally colorized) and forward it to the log file."""

    text = _colorize(message, color) if color else message
    print(text, flush=True)
    get_logger("console").log(level, message)


def log_info(message: str) -> None:
    """Print an informational message in blue."""

    logwrite(message, color=BLUE)


def log_success(message: str) -> None:
    """Print a success message in green."""

    logwrite(message, color=GREEN)


def log_warning(message: str) -> None:
    """Print a warning message in yellow."""

    logwrite(message, color=YELLOW, level=logging.WARNING)


def log_error(message: str) -> None:
    """Print an error message in red."""

    logwrite(message, color=RED, level=logging.ERROR)


def log_section(title: str) -> None:
    """Print a visual separator for a workflow step."""

    divider = "=" * 24
    log_info(divider)
    log_info(title)
