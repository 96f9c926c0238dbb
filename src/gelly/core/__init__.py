"""Core infrastructure layer - no Jellyfin or library dependencies.

- Configuration management (TOML)
- Logging and console output (Loguru, Rich)
- Background task execution
"""

from .config import (
    APP_ID,
    APP_VERSION,
    Config,
    ensure_directories,
    get_cache_root,
    get_config_dir,
    get_config_path,
    get_data_dir,
    load_config,
    save_config,
)
from .console import get_console, safe_print
from .output import log, setup_loguru
from .tasks import TaskResult, TaskRunner
