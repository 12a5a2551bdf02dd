"""Configuration management for git-retime."""

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class RetimeConfig:
    """Retime behaviour."""

    split_dates: bool = False
    allow_paradox: bool = False

    # Overrides `git var GIT_EDITOR` when set
    editor: str | None = None

    # Created inside the repository's git dir
    todo_filename: str = "git-retime-todo"


@dataclass
class ServerConfig:
    """Server configuration."""

    log_level: str = "INFO"
    default_dry_run: bool = True
    auto_backup: bool = True


@dataclass
class Config:
    """Main configuration."""

    retime: RetimeConfig = field(default_factory=RetimeConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def default_config_path() -> Path:
    return Path.home() / ".config" / "git-retime" / "config.json"


def load_config() -> Config:
    """
    Load configuration from multiple sources (in priority order):
    1. Environment variables (highest priority)
    2. Local config file (./.git-retime.json)
    3. User config file (~/.config/git-retime/config.json)
    4. Default values (lowest priority)
    """
    config = Config()

    config_paths = [
        Path("./.git-retime.json"),
        default_config_path(),
    ]

    for config_path in reversed(config_paths):  # Lower priority first
        if config_path.exists():
            try:
                with open(config_path) as f:
                    data = json.load(f)
                    _apply_config_dict(config, data)
            except json.JSONDecodeError as e:
                logger.warning(f"Failed to parse config file {config_path}: {e}")
            except IOError as e:
                logger.warning(f"Failed to read config file {config_path}: {e}")

    # Override with environment variables (highest priority)
    _apply_env_vars(config)

    return config


def _apply_section(section: object, data: dict) -> None:
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config section {type(section).__name__}: expected an object, got {data!r}")
        return

    for key, value in data.items():
        if hasattr(section, key):
            setattr(section, key, value)
        else:
            logger.warning(f"Unknown config key: {key}")


def _apply_config_dict(config: Config, data: dict) -> None:
    """Apply configuration from a dictionary."""
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config: expected an object, got {type(data).__name__}")
        return

    if "retime" in data:
        _apply_section(config.retime, data["retime"])

    if "server" in data:
        _apply_section(config.server, data["server"])


def _env_bool(name: str) -> bool | None:
    value = os.getenv(name)
    if value is None:
        return None
    return value.strip().lower() in _TRUE_VALUES


def _apply_env_vars(config: Config) -> None:
    """Apply environment variables to config."""
    # Retime settings
    if (split_dates := _env_bool("GIT_RETIME_SPLIT_DATES")) is not None:
        config.retime.split_dates = split_dates

    if (allow_paradox := _env_bool("GIT_RETIME_ALLOW_PARADOX")) is not None:
        config.retime.allow_paradox = allow_paradox

    if editor := os.getenv("GIT_RETIME_EDITOR"):
        config.retime.editor = editor

    # Server settings
    if log_level := os.getenv("GIT_RETIME_LOG_LEVEL"):
        config.server.log_level = log_level

    if (auto_backup := _env_bool("GIT_RETIME_AUTO_BACKUP")) is not None:
        config.server.auto_backup = auto_backup


def create_default_config_file(path: Path | None = None) -> Path:
    """Create a default configuration file."""
    if path is None:
        path = default_config_path()

    path.parent.mkdir(parents=True, exist_ok=True)

    default_config = {
        "retime": {
            "split_dates": False,
            "allow_paradox": False,
            "editor": None,
            "todo_filename": "git-retime-todo",
        },
        "server": {"log_level": "INFO", "default_dry_run": True, "auto_backup": True},
    }

    with open(path, "w") as f:
        json.dump(default_config, f, indent=2)

    return path


# Thread-safe global config instance
_config: Config | None = None
_config_lock = threading.Lock()


def get_config() -> Config:
    """Get the global configuration instance (thread-safe)."""
    global _config
    if _config is None:
        with _config_lock:
            # Double-check locking pattern
            if _config is None:
                _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload configuration from sources (thread-safe)."""
    global _config
    with _config_lock:
        _config = load_config()
        return _config
