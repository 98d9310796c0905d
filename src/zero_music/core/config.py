"""
Configuration management for Zero Music
"""

import math
import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, List, Optional

from loguru import logger

DEFAULT_CACHE_TTL_MINUTES = 5
MAX_CACHE_TTL_MINUTES = 1440
DEFAULT_SUPPORTED_FORMATS = [".mp3", ".flac", ".wav", ".m4a", ".ogg"]
FALLBACK_SUPPORTED_FORMATS = [".mp3"]


def normalize_extension(ext: str) -> str:
    """Lowercase an extension and make sure it has a leading dot."""
    ext = ext.strip().lower()
    if not ext:
        return ext
    return ext if ext.startswith(".") else f".{ext}"


def _coerce_ttl(value: Any) -> int:
    """Turn a configured TTL into positive whole minutes, or the default."""
    # bool is an int subclass; `true` in TOML is not a duration
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or (isinstance(value, float) and not math.isfinite(value))
    ):
        logger.warning(
            f"Ignoring non-numeric cache_ttl_minutes={value!r}, "
            f"using {DEFAULT_CACHE_TTL_MINUTES}"
        )
        return DEFAULT_CACHE_TTL_MINUTES
    if isinstance(value, float) and not value.is_integer():
        logger.warning(f"Truncating cache_ttl_minutes={value} to {int(value)} minutes")
    ttl = int(value)
    if ttl <= 0:
        return DEFAULT_CACHE_TTL_MINUTES
    return ttl


@dataclass
class MusicConfig:
    """Configuration for the music library index."""

    directory: str = field(default_factory=lambda: str(Path.home() / "Music"))
    supported_formats: List[str] = field(
        default_factory=lambda: list(DEFAULT_SUPPORTED_FORMATS)
    )
    cache_ttl_minutes: int = DEFAULT_CACHE_TTL_MINUTES

    def normalized(self) -> "MusicConfig":
        """Return a copy with defaulting rules applied.

        - a single format string is treated as a one-item list
        - empty format list falls back to [".mp3"]
        - extensions are lowercased with a leading dot
        - fractional TTL is truncated to whole minutes
        - non-positive or non-numeric TTL falls back to the default,
          large TTL is capped
        - directory is expanded and made absolute
        """
        formats = self.supported_formats or []
        if isinstance(formats, str):
            formats = [formats]
        formats = [normalize_extension(f) for f in formats if isinstance(f, str)]
        formats = [f for f in formats if f] or list(FALLBACK_SUPPORTED_FORMATS)

        ttl = _coerce_ttl(self.cache_ttl_minutes)
        ttl = min(ttl, MAX_CACHE_TTL_MINUTES)

        directory = self.directory
        if directory:
            directory = str(Path(directory).expanduser().absolute())

        return replace(
            self,
            directory=directory,
            supported_formats=formats,
            cache_ttl_minutes=ttl,
        )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # default: ~/.local/share/zero-music/zero-music.log
    max_file_size_mb: int = 10
    backup_count: int = 5
    console_output: bool = False


@dataclass
class Config:
    """Main configuration object."""

    music: MusicConfig = field(default_factory=MusicConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "zero-music"
    return Path.home() / ".config" / "zero-music"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "zero-music"
    return Path.home() / ".local" / "share" / "zero-music"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the current working directory first, then
    falls back to XDG_CONFIG_HOME/zero-music (or ~/.config/zero-music).
    """
    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config
    return get_config_dir() / "config.toml"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Zero Music Configuration

[music]
# Root directory of the music library
directory = "~/Music"

# Audio file extensions to index
supported_formats = [".mp3", ".flac", ".wav", ".m4a", ".ogg"]

# Minutes a scanned catalog stays valid before a rescan is forced
cache_ttl_minutes = 5

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/zero-music/zero-music.log)
# log_file = "/path/to/custom/zero-music.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of rotated log files to keep
backup_count = 5

# Also output logs to stderr
console_output = false
""".strip()


def _parse_env_int(key: str, minimum: int, maximum: int) -> Optional[int]:
    raw = os.environ.get(key)
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {key}={raw!r}")
        return None
    if value < minimum or value > maximum:
        logger.warning(f"Ignoring out-of-range {key}={value}")
        return None
    return value


def apply_env_overrides(config: Config) -> Config:
    """Apply ZERO_MUSIC_* environment variables on top of a loaded config.

    - ZERO_MUSIC_MUSIC_DIRECTORY
    - ZERO_MUSIC_CACHE_TTL_MINUTES (1-1440)
    """
    music_dir = os.environ.get("ZERO_MUSIC_MUSIC_DIRECTORY")
    if music_dir:
        config.music.directory = str(Path(music_dir).expanduser().absolute())

    ttl = _parse_env_int("ZERO_MUSIC_CACHE_TTL_MINUTES", 1, MAX_CACHE_TTL_MINUTES)
    if ttl is not None:
        config.music.cache_ttl_minutes = ttl

    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values, and a .env file in the
    config directory is loaded first if present.
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = config_path or get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        logger.info(f"Created default configuration at: {config_path}")
        config = Config()
        config.music = config.music.normalized()
        return apply_env_overrides(config)

    config = Config()
    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)

        if "music" in toml_data:
            music_data = toml_data["music"]
            config.music = MusicConfig(
                directory=music_data.get("directory", config.music.directory),
                supported_formats=music_data.get(
                    "supported_formats", config.music.supported_formats
                ),
                cache_ttl_minutes=music_data.get(
                    "cache_ttl_minutes", config.music.cache_ttl_minutes
                ),
            )

        if "logging" in toml_data:
            logging_data = toml_data["logging"]
            log_file = logging_data.get("log_file")
            if log_file:
                log_file = str(Path(log_file).expanduser())
            config.logging = LoggingConfig(
                level=logging_data.get("level", config.logging.level).upper(),
                log_file=log_file,
                max_file_size_mb=logging_data.get(
                    "max_file_size_mb", config.logging.max_file_size_mb
                ),
                backup_count=logging_data.get(
                    "backup_count", config.logging.backup_count
                ),
                console_output=logging_data.get(
                    "console_output", config.logging.console_output
                ),
            )

    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Error loading configuration from {config_path}: {e}")
        logger.warning("Using default configuration.")
        config = Config()

    config.music = config.music.normalized()
    return apply_env_overrides(config)
