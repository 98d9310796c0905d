"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging setup (Loguru)
- Path security checks for library files

Clean architecture principle: The core layer has no dependencies on
the domain layer.
"""

from .config import (
    Config,
    LoggingConfig,
    MusicConfig,
    create_default_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    load_config,
)
from .output import setup_logging, setup_loguru

__all__ = [
    # Config
    "Config",
    "LoggingConfig",
    "MusicConfig",
    "create_default_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "load_config",
    # Logging
    "setup_logging",
    "setup_loguru",
]
