"""
leetcoach settings.

Settings are layered, later layers winning:

1. Dataclass defaults below
2. The first config file found (YAML, TOML or JSON), or the one passed with --config
3. Environment variables: LEETCOACH_*, plus DISCORD_TOKEN, LEETIFY_API_KEY and LEETIFY_BASE_URL

Secrets should live in the environment; save_config() never writes them.
"""

import json
import logging
import os
import tomllib
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


@dataclass
class LeetifyConfig:
    """Leetify public API client settings."""

    base_url: str = "https://api-public.cs-prod.leetify.com"
    api_key: str | None = None
    timeout_seconds: float = 30.0
    min_request_interval: float = 1.0
    user_agent: str = "leetcoach/0.3"

    # Matches aggregated into the /stats summary
    summary_match_window: int = 30


@dataclass
class DiscordConfig:
    token: str = ""
    activity_text: str = "CS2 Stats | /help"
    # Guild to sync slash commands to instantly (global sync otherwise)
    dev_guild_id: int | None = None


@dataclass
class DatabaseConfig:
    """SQLite store for account links, watches and cached API responses."""

    path: str = str(Path.home() / ".leetcoach" / "leetcoach.db")
    cache_ttl_seconds: int = 300


@dataclass
class MonitorConfig:
    """Polling loop behind /watch notifications."""

    enabled: bool = True
    interval_minutes: int = 15
    matches_per_check: int = 5
    delay_between_users_seconds: float = 1.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    file: str | None = None
    file_max_bytes: int = 5 * 1024 * 1024
    file_backup_count: int = 3


@dataclass
class LeetcoachConfig:
    """All leetcoach settings, one attribute per section."""

    leetify: LeetifyConfig = field(default_factory=LeetifyConfig)
    discord: DiscordConfig = field(default_factory=DiscordConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


SECTIONS = ("leetify", "discord", "database", "monitor", "logging")

# Environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "LEETCOACH_LOG_LEVEL": ("logging", "level"),
    "LEETCOACH_LOG_FILE": ("logging", "file"),
    "LEETCOACH_DB_PATH": ("database", "path"),
    "LEETCOACH_CACHE_TTL": ("database", "cache_ttl_seconds"),
    "LEETCOACH_MONITOR_ENABLED": ("monitor", "enabled"),
    "LEETCOACH_MONITOR_INTERVAL": ("monitor", "interval_minutes"),
    "LEETCOACH_DEV_GUILD_ID": ("discord", "dev_guild_id"),
    "LEETIFY_BASE_URL": ("leetify", "base_url"),
    "LEETIFY_API_KEY": ("leetify", "api_key"),
    "DISCORD_TOKEN": ("discord", "token"),
}

# Opaque strings, even when they look numeric
_UNCOERCED_KEYS = frozenset({"api_key", "token", "base_url", "path", "file"})


def get_default_config_paths() -> list[Path]:
    """Candidate config files, in search order."""
    cwd = Path.cwd()
    home = Path.home()
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", str(home / ".config")))
    return [
        cwd / "leetcoach.yaml",
        cwd / "leetcoach.toml",
        cwd / "leetcoach.json",
        cwd / ".leetcoach.yaml",
        xdg_config / "leetcoach" / "config.yaml",
        xdg_config / "leetcoach" / "config.toml",
        home / ".leetcoach.yaml",
    ]


def load_yaml_config(path: Path) -> dict[str, Any]:
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_toml_config(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    with open(path) as f:
        return json.load(f)


_LOADERS: dict[str, Callable[[Path], dict[str, Any]]] = {
    ".yaml": load_yaml_config,
    ".yml": load_yaml_config,
    ".toml": load_toml_config,
    ".json": load_json_config,
}


def load_config_file(path: Path) -> dict[str, Any]:
    """Read one config file; the format comes from its extension."""
    if not path.exists():
        return {}
    loader = _LOADERS.get(path.suffix.lower())
    if loader is None:
        logger.warning(f"Ignoring config file with unsupported extension: {path}")
        return {}
    return loader(path)


def _coerce_env_value(value: str) -> Any:
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if value.isdigit():
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def load_env_config() -> dict[str, Any]:
    """Settings taken from ENV_OVERRIDES, as a nested dict."""
    overrides: dict[str, Any] = {}
    for env_var, (section, key) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_var)
        if raw is None:
            continue
        value = raw if key in _UNCOERCED_KEYS else _coerce_env_value(raw)
        overrides.setdefault(section, {})[key] = value
    return overrides


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_configs(current, value)
        else:
            merged[key] = value
    return merged


def dict_to_config(data: dict[str, Any]) -> LeetcoachConfig:
    """Build a LeetcoachConfig from nested dicts, skipping unknown keys."""
    config = LeetcoachConfig()
    for name in SECTIONS:
        values = data.get(name)
        if not isinstance(values, dict):
            continue
        section = getattr(config, name)
        for key, value in values.items():
            if hasattr(section, key):
                setattr(section, key, value)
            else:
                logger.debug(f"Unknown setting {name}.{key} ignored")
    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> LeetcoachConfig:
    """
    Resolve settings from defaults, one config file and the environment.

    Args:
        config_file: File to read instead of searching the default locations
        include_env: Apply environment overrides on top of the file

    Returns:
        The resolved LeetcoachConfig
    """
    candidates = [config_file] if config_file else get_default_config_paths()
    data: dict[str, Any] = {}
    for path in candidates:
        if path.exists():
            data = load_config_file(path)
            logger.info(f"Using config file {path}")
            break

    if include_env:
        data = merge_configs(data, load_env_config())
    return dict_to_config(data)


def save_config(config: LeetcoachConfig, path: Path) -> None:
    """
    Write settings to a .yaml/.yml or .json file.

    The Discord token and Leetify key are blanked in the written copy.
    """
    data = asdict(config)
    data["discord"]["token"] = ""
    data["leetify"]["api_key"] = None

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        text = yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    elif suffix == ".json":
        text = json.dumps(data, indent=2)
    else:
        raise ValueError(f"Cannot write config as {suffix or 'a file without extension'}")
    path.write_text(text)
    logger.info(f"Wrote config to {path}")


_active_config: LeetcoachConfig | None = None


def get_config() -> LeetcoachConfig:
    """Process-wide settings, loaded on first access."""
    global _active_config
    if _active_config is None:
        _active_config = load_config()
    return _active_config


def set_config(config: LeetcoachConfig) -> None:
    global _active_config
    _active_config = config


def reset_config() -> None:
    """Forget the cached settings so the next get_config() reloads them."""
    global _active_config
    _active_config = None


DEFAULT_CONFIG_YAML = """# leetcoach configuration
# Secrets belong in the environment: DISCORD_TOKEN, LEETIFY_API_KEY

leetify:
  base_url: https://api-public.cs-prod.leetify.com
  timeout_seconds: 30.0
  min_request_interval: 1.0
  summary_match_window: 30

discord:
  activity_text: "CS2 Stats | /help"
  # dev_guild_id: 123456789012345678  # sync slash commands to one guild instantly

database:
  # path: /var/lib/leetcoach/leetcoach.db
  cache_ttl_seconds: 300

# New-match notifications for /watch
monitor:
  enabled: true
  interval_minutes: 15
  matches_per_check: 5
  delay_between_users_seconds: 1.0

logging:
  level: INFO
  # file: /var/log/leetcoach/leetcoach.log
"""


def generate_default_config(path: Path) -> None:
    """Write a commented YAML template, or the defaults as JSON."""
    if path.suffix.lower() in (".yaml", ".yml"):
        path.write_text(DEFAULT_CONFIG_YAML)
    else:
        save_config(LeetcoachConfig(), path)
    logger.info(f"Generated default config at {path}")
