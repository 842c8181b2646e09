"""
Configuration management for Channel Schedule
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

VALID_WEEK_STARTS = {"sunday", "monday"}


@dataclass
class ScheduleConfig:
    """Configuration for the weekly calendar grid and lineup editor."""

    snap_minutes: int = 30  # Boundaries snap to this increment
    min_slot_minutes: int = 30  # Shortest show or DJ slot
    hour_height_px: int = 48  # Pixel height of one hour cell
    min_segment_height_px: int = 24  # Segments never render shorter than this
    week_starts_on: str = "sunday"  # 'sunday' | 'monday'

    def validate(self) -> None:
        """Validate schedule configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.week_starts_on not in VALID_WEEK_STARTS:
            raise ValueError(
                f"Invalid week_starts_on: '{self.week_starts_on}'. "
                f"Valid values are: {sorted(VALID_WEEK_STARTS)}"
            )
        if self.snap_minutes <= 0 or 60 % self.snap_minutes != 0:
            raise ValueError(
                f"snap_minutes must be a positive divisor of 60, got {self.snap_minutes}"
            )
        if self.min_slot_minutes <= 0:
            raise ValueError(
                f"min_slot_minutes must be positive, got {self.min_slot_minutes}"
            )
        if self.hour_height_px <= 0:
            raise ValueError(f"hour_height_px must be positive, got {self.hour_height_px}")


@dataclass
class BroadcastConfig:
    """Configuration for broadcast links and tokens."""

    station_id: str = "channel-main"
    app_url: str = "https://channel-app.com"
    default_venue_slug: str = "venue"
    token_expiry_buffer_minutes: int = 60  # Token stays valid this long after show end
    early_window_minutes: int = 15  # Joining earlier than this counts as 'early'


@dataclass
class ServerConfig:
    """Configuration for the HTTP API."""

    # Browser origins allowed to call the API (the web app's dev server by default)
    allowed_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/channel-schedule/channel-schedule.log)
    )
    max_file_size_mb: int = 10  # Maximum log file size before rotation
    backup_count: int = 5  # Number of backup files to keep
    console_output: bool = False  # Also output to stderr (for debugging)


@dataclass
class Config:
    """Main configuration object."""

    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    broadcast: BroadcastConfig = field(default_factory=BroadcastConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "channel-schedule"
    return Path.home() / ".config" / "channel-schedule"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            if config_path.exists():
                return config_path
            # Found project root but no config.toml there
            return None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/channel-schedule (or ~/.config/channel-schedule)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "channel-schedule"
    return Path.home() / ".local" / "share" / "channel-schedule"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Channel Schedule Configuration

[schedule]
# Show and DJ slot boundaries snap to this many minutes
snap_minutes = 30

# Shortest allowed show or DJ slot, in minutes
min_slot_minutes = 30

# Pixel height of one hour in the weekly calendar
hour_height_px = 48

# Segments are never drawn shorter than this many pixels
min_segment_height_px = 24

# First day of the calendar week (sunday or monday)
week_starts_on = "sunday"

[broadcast]
# Station that new shows are scheduled on
station_id = "channel-main"

# Public base URL used for broadcast links
app_url = "https://channel-app.com"

# Venue slug used for venue broadcast links
default_venue_slug = "venue"

# Broadcast tokens stay valid this many minutes after the show ends
token_expiry_buffer_minutes = 60

# DJs joining earlier than this many minutes before start are 'early'
early_window_minutes = 15

[server]
# Browser origins allowed to call the API
allowed_origins = ["http://localhost:3000"]

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/channel-schedule/channel-schedule.log)
# log_file = "/path/to/custom/channel-schedule.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of backup log files to keep
backup_count = 5

# Also output logs to stderr (useful for debugging)
console_output = false
""".strip()


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - CHANNEL_APP_URL
    - CHANNEL_STATION_ID
    - CHANNEL_ALLOWED_ORIGINS (comma-separated)
    """
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()
    config = Config()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        _apply_env_overrides(config)
        return config

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        print(f"Error loading configuration: {e}")
        print("Using default configuration.")
        _apply_env_overrides(config)
        return config

    if "schedule" in toml_data:
        schedule_data = toml_data["schedule"]
        config.schedule = ScheduleConfig(
            snap_minutes=schedule_data.get("snap_minutes", config.schedule.snap_minutes),
            min_slot_minutes=schedule_data.get(
                "min_slot_minutes", config.schedule.min_slot_minutes
            ),
            hour_height_px=schedule_data.get(
                "hour_height_px", config.schedule.hour_height_px
            ),
            min_segment_height_px=schedule_data.get(
                "min_segment_height_px", config.schedule.min_segment_height_px
            ),
            week_starts_on=str(
                schedule_data.get("week_starts_on", config.schedule.week_starts_on)
            ).lower(),
        )
        try:
            config.schedule.validate()
        except ValueError as e:
            print(f"Warning: Invalid schedule configuration: {e}")
            print("Using default schedule configuration.")
            config.schedule = ScheduleConfig()

    if "broadcast" in toml_data:
        broadcast_data = toml_data["broadcast"]
        config.broadcast = BroadcastConfig(
            station_id=broadcast_data.get("station_id", config.broadcast.station_id),
            app_url=broadcast_data.get("app_url", config.broadcast.app_url),
            default_venue_slug=broadcast_data.get(
                "default_venue_slug", config.broadcast.default_venue_slug
            ),
            token_expiry_buffer_minutes=broadcast_data.get(
                "token_expiry_buffer_minutes",
                config.broadcast.token_expiry_buffer_minutes,
            ),
            early_window_minutes=broadcast_data.get(
                "early_window_minutes", config.broadcast.early_window_minutes
            ),
        )

    if "server" in toml_data:
        server_data = toml_data["server"]
        config.server = ServerConfig(
            allowed_origins=list(
                server_data.get("allowed_origins", config.server.allowed_origins)
            )
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
            backup_count=logging_data.get("backup_count", config.logging.backup_count),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    _apply_env_overrides(config)
    return config


def _apply_env_overrides(config: Config) -> None:
    """Override broadcast and server settings with environment variables if present."""
    app_url = os.environ.get("CHANNEL_APP_URL")
    station_id = os.environ.get("CHANNEL_STATION_ID")
    allowed_origins = os.environ.get("CHANNEL_ALLOWED_ORIGINS")

    if app_url:
        config.broadcast.app_url = app_url.rstrip("/")
    if station_id:
        config.broadcast.station_id = station_id
    if allowed_origins:
        config.server.allowed_origins = [
            origin.strip() for origin in allowed_origins.split(",") if origin.strip()
        ]


def save_config(config: Config, config_path: Optional[Path] = None) -> None:
    """Write configuration back to TOML."""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        "[schedule]",
        f"snap_minutes = {config.schedule.snap_minutes}",
        f"min_slot_minutes = {config.schedule.min_slot_minutes}",
        f"hour_height_px = {config.schedule.hour_height_px}",
        f"min_segment_height_px = {config.schedule.min_segment_height_px}",
        f'week_starts_on = "{config.schedule.week_starts_on}"',
        "",
        "[broadcast]",
        f'station_id = "{config.broadcast.station_id}"',
        f'app_url = "{config.broadcast.app_url}"',
        f'default_venue_slug = "{config.broadcast.default_venue_slug}"',
        f"token_expiry_buffer_minutes = {config.broadcast.token_expiry_buffer_minutes}",
        f"early_window_minutes = {config.broadcast.early_window_minutes}",
        "",
        "[server]",
        "allowed_origins = ["
        + ", ".join(f'"{origin}"' for origin in config.server.allowed_origins)
        + "]",
        "",
        "[logging]",
        f'level = "{config.logging.level}"',
    ]
    if config.logging.log_file:
        lines.append(f'log_file = "{config.logging.log_file}"')
    lines += [
        f"max_file_size_mb = {config.logging.max_file_size_mb}",
        f"backup_count = {config.logging.backup_count}",
        f"console_output = {'true' if config.logging.console_output else 'false'}",
    ]

    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
