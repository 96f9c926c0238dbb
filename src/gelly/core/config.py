"""
Configuration management for Gelly
"""

import json
import os
import tomllib
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Optional

from loguru import logger

APP_ID = "io.m51.Gelly"
APP_NAME = "gelly"
CLIENT_NAME = "Gelly"

try:
    APP_VERSION = version(APP_NAME)
except PackageNotFoundError:
    # Running from a source checkout without an install
    APP_VERSION = "0.1.0"


@dataclass
class ServerConfig:
    """Configuration for the Jellyfin server connection."""

    host: str = ""
    library_id: str = ""


@dataclass
class CacheConfig:
    """Configuration for the on-disk caches and library sync."""

    page_size: int = 1000  # Items per /Items page
    poll_interval_ms: int = 100  # Wait between checks for an in-flight fetch
    max_workers: int = 8  # Thread pool size for network and disk work
    compress_library: bool = True  # gzip library.json / playlists.json

    def validate(self) -> None:
        """Validate cache configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.poll_interval_ms <= 0:
            raise ValueError(
                f"poll_interval_ms must be positive, got {self.poll_interval_ms}"
            )
        if self.max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")


@dataclass
class PlaybackConfig:
    """Configuration for streaming and playback."""

    max_bitrate_kbps: int = 0  # 0 = let the server decide
    refresh_on_startup: bool = False  # Always reload the library from the server

    @property
    def max_bitrate(self) -> Optional[int]:
        """Bitrate cap in bits per second, or None if unlimited."""
        if self.max_bitrate_kbps <= 0:
            return None
        return self.max_bitrate_kbps * 1000


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # Default: ~/.local/share/gelly/gelly.log
    console_output: bool = False  # Also log to stderr


@dataclass
class Config:
    """Main configuration object."""

    server: ServerConfig = field(default_factory=ServerConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_config_path() -> Path:
    """Get the main configuration file path."""
    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / APP_NAME
    return Path.home() / ".local" / "share" / APP_NAME


def get_cache_root() -> Path:
    """Root of all cache stores: XDG cache dir, then ~/.cache, then /tmp."""
    cache_home = os.environ.get("XDG_CACHE_HOME")
    if cache_home:
        base = Path(cache_home)
    elif os.environ.get("HOME"):
        base = Path(os.environ["HOME"]) / ".cache"
    else:
        base = Path("/tmp")
    return base / APP_ID


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Gelly Configuration

[server]
# Jellyfin server URL (set by `gelly login`)
host = ""

# Music library to browse (set by `gelly views --select`)
library_id = ""

[cache]
# Items fetched per page when loading the library
page_size = 1000

# Milliseconds between checks while another request fetches the same item
poll_interval_ms = 100

# Worker threads for network and disk I/O
max_workers = 8

# Compress cached library metadata
compress_library = true

[playback]
# Maximum streaming bitrate in kbps (0 = unlimited)
max_bitrate_kbps = 0

# Always fetch the library from the server instead of the disk cache
refresh_on_startup = false

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/gelly/gelly.log)
# log_file = "/path/to/gelly.log"

# Also output logs to console (useful for debugging)
console_output = false
""".strip()


def _parse_config(toml_data: dict) -> Config:
    config = Config()

    if "server" in toml_data:
        server_data = toml_data["server"]
        config.server = ServerConfig(
            host=server_data.get("host", config.server.host),
            library_id=server_data.get("library_id", config.server.library_id),
        )

    if "cache" in toml_data:
        cache_data = toml_data["cache"]
        config.cache = CacheConfig(
            page_size=cache_data.get("page_size", config.cache.page_size),
            poll_interval_ms=cache_data.get(
                "poll_interval_ms", config.cache.poll_interval_ms
            ),
            max_workers=cache_data.get("max_workers", config.cache.max_workers),
            compress_library=cache_data.get(
                "compress_library", config.cache.compress_library
            ),
        )
        try:
            config.cache.validate()
        except (TypeError, ValueError) as e:
            logger.warning(f"Invalid cache configuration: {e}; using defaults")
            config.cache = CacheConfig()

    if "playback" in toml_data:
        playback_data = toml_data["playback"]
        config.playback = PlaybackConfig(
            max_bitrate_kbps=playback_data.get(
                "max_bitrate_kbps", config.playback.max_bitrate_kbps
            ),
            refresh_on_startup=playback_data.get(
                "refresh_on_startup", config.playback.refresh_on_startup
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
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def _apply_env_overrides(config: Config) -> None:
    host = os.environ.get("GELLY_HOST")
    if host:
        config.server.host = host
    level = os.environ.get("GELLY_LOG_LEVEL")
    if level:
        config.logging.level = level.upper()


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - GELLY_HOST
    - GELLY_LOG_LEVEL
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
        _apply_env_overrides(config)
        return config

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Error loading configuration from {config_path}: {e}")
        logger.warning("Using default configuration.")
        config = Config()
        _apply_env_overrides(config)
        return config

    config = _parse_config(toml_data)
    _apply_env_overrides(config)
    return config


def save_config(config: Config, config_path: Optional[Path] = None) -> bool:
    """Save configuration to file."""
    config_path = config_path or get_config_path()

    toml_content = f"""# Gelly Configuration

[server]
host = {json.dumps(config.server.host)}
library_id = {json.dumps(config.server.library_id)}

[cache]
page_size = {config.cache.page_size}
poll_interval_ms = {config.cache.poll_interval_ms}
max_workers = {config.cache.max_workers}
compress_library = {str(config.cache.compress_library).lower()}

[playback]
max_bitrate_kbps = {config.playback.max_bitrate_kbps}
refresh_on_startup = {str(config.playback.refresh_on_startup).lower()}

[logging]
level = {json.dumps(config.logging.level)}
console_output = {str(config.logging.console_output).lower()}"""

    if config.logging.log_file:
        toml_content += f"\nlog_file = {json.dumps(config.logging.log_file)}"

    toml_content += "\n"

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(toml_content)
    except OSError as e:
        logger.error(f"Error saving configuration to {config_path}: {e}")
        return False

    return True


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
