"""Core infrastructure layer - no playback dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging and console output (Loguru, Rich)
- Single-instance locking
"""

# Configuration
from .config import (
    Config,
    LoggingConfig,
    PlayerConfig,
    create_default_config,
    ensure_directories,
    get_config_dir,
    get_config_path,
    get_data_dir,
    load_config,
    save_config,
)

# Output
from .output import get_console, log, setup_from_config, setup_loguru

# Instance lock
from .instance_lock import AlreadyRunning, InstanceLock

__all__ = [
    # Config
    "Config",
    "LoggingConfig",
    "PlayerConfig",
    "load_config",
    "save_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "create_default_config",
    "ensure_directories",
    # Output
    "get_console",
    "log",
    "setup_loguru",
    "setup_from_config",
    # Instance lock
    "AlreadyRunning",
    "InstanceLock",
]
