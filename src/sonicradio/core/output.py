"""
Unified output system using Loguru.
File logging for diagnostics, rich console for user-facing status lines.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.console import Console

from .config import LoggingConfig, get_data_dir

_console: Optional[Console] = None

LEVEL_STYLES = {
    "debug": "cyan",
    "info": "white",
    "warning": "yellow",
    "error": "red",
}


def get_log_file_path() -> Path:
    """Get the default path to the log file."""
    return get_data_dir() / "sonicradio.log"


def setup_loguru(
    log_file: Path,
    level: str = "INFO",
    rotation_mb: int = 10,
    retention: int = 5,
    console_output: bool = False,
) -> None:
    """
    Configure loguru for file logging (the terminal belongs to the front-end).

    Args:
        log_file: Path to log file
        level: Minimum level for file logging (DEBUG, INFO, WARNING, ERROR)
        rotation_mb: File size that triggers rotation
        retention: Number of rotated files to keep
        console_output: Also log to stderr
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Remove default handler
    logger.remove()

    logger.add(
        log_file,
        rotation=f"{rotation_mb} MB",
        retention=retention,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,  # Synchronous writes (thread-safe but blocking)
    )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def setup_from_config(config: LoggingConfig) -> Path:
    """Configure logging from the [logging] section and return the log file path."""
    log_file = Path(config.log_file) if config.log_file else get_log_file_path()
    setup_loguru(
        log_file,
        level=config.level,
        rotation_mb=config.rotation_mb,
        retention=config.retention,
        console_output=config.console_output,
    )
    return log_file


def get_console() -> Console:
    """Shared rich console for user-facing output."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def log(message: str, level: str = "info") -> None:
    """
    Unified logging: writes to the log file AND prints to the console.

    Use this instead of print() for user-facing messages that should also be logged.

    Args:
        message: User-facing message
        level: Log level (debug, info, warning, error)
    """
    log_func = getattr(logger, level)
    log_func(message)
    get_console().print(message, style=LEVEL_STYLES.get(level, "white"), markup=False)
