"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Database connections (SQLite)
- Logging (Loguru)
- Console management (Rich)
"""

from .config import (
    BroadcastConfig,
    Config,
    LoggingConfig,
    ScheduleConfig,
    create_default_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    load_config,
    save_config,
)
from .console import get_console
from .database import get_database_path, get_db_connection, init_database
from .output import setup_from_config, setup_loguru

__all__ = [
    # Config
    "Config",
    "ScheduleConfig",
    "BroadcastConfig",
    "LoggingConfig",
    "load_config",
    "save_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "create_default_config",
    # Database
    "get_database_path",
    "get_db_connection",
    "init_database",
    # Logging
    "setup_loguru",
    "setup_from_config",
    # Console
    "get_console",
]
