"""
Logging setup using Loguru.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import LoggingConfig, get_data_dir

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"


def get_log_file_path() -> Path:
    """Get the path to the log file."""
    return get_data_dir() / "zero-music.log"


def setup_loguru(
    log_file: Optional[Path],
    level: str = "INFO",
    rotation: str = "10 MB",
    retention: int = 5,
    console_output: bool = False,
) -> None:
    """
    Configure loguru sinks for the process.

    Args:
        log_file: Path to log file (None disables the file sink)
        level: Minimum level (DEBUG, INFO, WARNING, ERROR)
        rotation: Size at which the log file is rotated
        retention: Number of rotated files to keep
        console_output: Also write to stderr
    """
    # Remove default handler
    logger.remove()

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            rotation=rotation,
            retention=retention,
            level=level,
            format=LOG_FORMAT,
            enqueue=False,  # Synchronous writes (thread-safe but blocking)
        )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def setup_logging(config: LoggingConfig) -> None:
    """Configure logging from a LoggingConfig section."""
    log_file = Path(config.log_file) if config.log_file else get_log_file_path()
    setup_loguru(
        log_file,
        level=config.level.upper(),
        rotation=f"{config.max_file_size_mb} MB",
        retention=config.backup_count,
        console_output=config.console_output,
    )
