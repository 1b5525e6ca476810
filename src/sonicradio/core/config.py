"""
Configuration management for sonicradio
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

ENGINES = ("auto", "mpv", "ffplay")


@dataclass
class PlayerConfig:
    """Configuration for the playback engine."""

    engine: str = "auto"  # auto, mpv, ffplay
    volume: int = 50
    mpv_socket_path: Optional[str] = None
    mpv_path: Optional[str] = None
    ffplay_path: Optional[str] = None
    socket_timeout: float = 2.0  # Max wait for the mpv socket file
    socket_retry_interval: float = 0.01
    ipc_timeout: float = 2.0  # Max round-trip for one IPC request
    stop_timeout: float = 2.0  # Grace period before SIGKILL
    poll_interval: float = 1.0  # Metadata refresh period

    def validate(self) -> None:
        """Validate player configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.engine not in ENGINES:
            raise ValueError(
                f"Invalid engine: {self.engine!r}. Valid engines are: {ENGINES}"
            )
        for name in ("socket_timeout", "ipc_timeout", "stop_timeout", "poll_interval"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        self.volume = max(0, min(100, int(self.volume)))


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/sonicradio/sonicradio.log)
    )
    rotation_mb: int = 10  # Log file size before rotation
    retention: int = 5  # Number of rotated files to keep
    console_output: bool = False  # Also output to stderr (for debugging)


@dataclass
class Config:
    """Main configuration object."""

    player: PlayerConfig = field(default_factory=PlayerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "sonicradio"
    return Path.home() / ".config" / "sonicradio"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Used during development so a checkout's config.toml wins over the user's.
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            return config_path if config_path.exists() else None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/sonicradio (or ~/.config/sonicradio)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path (logs, lock file)."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "sonicradio"
    return Path.home() / ".local" / "share" / "sonicradio"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# sonicradio Configuration

[player]
# Playback engine: "auto" (mpv, falling back to ffplay), "mpv" or "ffplay"
engine = "auto"

# Default volume (0-100)
volume = 50

# Path for mpv control socket (auto-generated in the temp dir if not specified)
# mpv_socket_path = "/tmp/sonicradio-mpv.sock"

# Explicit engine binaries (looked up on PATH if not specified)
# mpv_path = "/usr/bin/mpv"
# ffplay_path = "/usr/bin/ffplay"

# Seconds to wait for mpv to create its control socket
socket_timeout = 2.0

# Seconds allowed for one IPC request/response round-trip
ipc_timeout = 2.0

# Seconds to wait after SIGTERM before killing the engine
stop_timeout = 2.0

# Seconds between now-playing refreshes
poll_interval = 1.0

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/sonicradio/sonicradio.log)
# log_file = "/path/to/custom/sonicradio.log"

# Log file size in MB before rotation
rotation_mb = 10

# Number of rotated log files to keep
retention = 5

# Also output logs to stderr (useful for debugging)
console_output = false
""".strip()


def _parse_config(toml_data: dict) -> Config:
    config = Config()

    if "player" in toml_data:
        player_data = toml_data["player"]
        defaults = config.player
        config.player = PlayerConfig(
            engine=player_data.get("engine", defaults.engine),
            volume=player_data.get("volume", defaults.volume),
            mpv_socket_path=player_data.get("mpv_socket_path"),
            mpv_path=player_data.get("mpv_path"),
            ffplay_path=player_data.get("ffplay_path"),
            socket_timeout=player_data.get("socket_timeout", defaults.socket_timeout),
            socket_retry_interval=player_data.get(
                "socket_retry_interval", defaults.socket_retry_interval
            ),
            ipc_timeout=player_data.get("ipc_timeout", defaults.ipc_timeout),
            stop_timeout=player_data.get("stop_timeout", defaults.stop_timeout),
            poll_interval=player_data.get("poll_interval", defaults.poll_interval),
        )
        try:
            config.player.validate()
        except (TypeError, ValueError) as e:
            print(f"Warning: Invalid player configuration: {e}")
            print("Using default player configuration.")
            config.player = PlayerConfig()

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            rotation_mb=logging_data.get("rotation_mb", config.logging.rotation_mb),
            retention=logging_data.get("retention", config.logging.retention),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def _apply_env_overrides(config: Config) -> None:
    engine = os.environ.get("SONICRADIO_ENGINE")
    if engine:
        if engine in ENGINES:
            config.player.engine = engine
        else:
            print(f"Warning: ignoring SONICRADIO_ENGINE={engine!r}")

    volume = os.environ.get("SONICRADIO_VOLUME")
    if volume:
        try:
            config.player.volume = max(0, min(100, int(volume)))
        except ValueError:
            print(f"Warning: ignoring SONICRADIO_VOLUME={volume!r}")

    level = os.environ.get("SONICRADIO_LOG_LEVEL")
    if level:
        config.logging.level = level.upper()


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables (optionally from a .env next to the config) override
    TOML values:
    - SONICRADIO_ENGINE
    - SONICRADIO_VOLUME
    - SONICRADIO_LOG_LEVEL
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        config = Config()
    else:
        try:
            with open(config_path, "rb") as f:
                config = _parse_config(tomllib.load(f))
        except (OSError, tomllib.TOMLDecodeError) as e:
            print(f"Error loading configuration from {config_path}: {e}")
            print("Using default configuration.")
            config = Config()

    _apply_env_overrides(config)
    return config


def save_config(config: Config) -> bool:
    """Save configuration to file."""
    config_path = get_config_path()
    player = config.player

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        toml_content = f"""# sonicradio Configuration

[player]
engine = "{player.engine}"
volume = {player.volume}
socket_timeout = {player.socket_timeout}
socket_retry_interval = {player.socket_retry_interval}
ipc_timeout = {player.ipc_timeout}
stop_timeout = {player.stop_timeout}
poll_interval = {player.poll_interval}"""

        if player.mpv_socket_path:
            toml_content += f'\nmpv_socket_path = "{player.mpv_socket_path}"'
        if player.mpv_path:
            toml_content += f'\nmpv_path = "{player.mpv_path}"'
        if player.ffplay_path:
            toml_content += f'\nffplay_path = "{player.ffplay_path}"'

        toml_content += f"""

[logging]
level = "{config.logging.level}"
rotation_mb = {config.logging.rotation_mb}
retention = {config.logging.retention}
console_output = {str(config.logging.console_output).lower()}"""

        if config.logging.log_file:
            toml_content += f'\nlog_file = "{config.logging.log_file}"'

        toml_content += "\n"

        with open(config_path, "w", encoding="utf-8") as f:
            f.write(toml_content)

        return True

    except OSError as e:
        print(f"Error saving configuration to {config_path}: {e}")
        return False


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
