"""Configuration loading from CLI args, env vars, and optional YAML file."""

import logging
import os
from dataclasses import dataclass, field

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SOURCES = {
    "system": "/var/log/custom/system.log",
    "auth": "/var/log/custom/auth.log",
    "combined": "/var/log/custom/combined.log",
    "error": "/var/log/custom/error.log",
    "access": "/var/log/custom/access.log",
}


class ConfigError(ValueError):
    """Raised for configuration that cannot be used to start the service."""


@dataclass(frozen=True)
class Config:
    host: str = "0.0.0.0"
    http_port: int = 5500
    ws_port: int = 5501
    poll_interval: float = 1.0
    snapshot_limit: int = 1000
    overview_limit: int = 100
    send_timeout: float = 5.0
    queue_size: int = 1000
    use_fs_events: bool = False
    sources: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SOURCES))


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("true", "1", "yes")


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path or file missing."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    logger.info("Loaded YAML config from %s", path)
    return data


def _sources_from(yaml_data: dict) -> dict[str, str]:
    raw = yaml_data.get("sources")
    if raw is None:
        return dict(DEFAULT_SOURCES)
    if not isinstance(raw, dict) or not raw:
        raise ConfigError("'sources' must be a non-empty mapping of name -> path")
    sources = {}
    for name, path in raw.items():
        if not isinstance(path, str) or not path:
            raise ConfigError(f"source {name!r} has no path")
        sources[str(name)] = path
    return sources


def load_config(cli_args=None, yaml_data: dict | None = None) -> Config:
    """Build Config. Precedence: CLI args > env vars > YAML > defaults."""
    yaml_data = yaml_data or {}

    def pick(name: str, env: str, cast):
        cli_value = getattr(cli_args, name, None) if cli_args is not None else None
        if cli_value is not None:
            return cast(cli_value)
        if env in os.environ:
            return cast(os.environ[env])
        if name in yaml_data:
            return cast(yaml_data[name])
        return getattr(Config, name)

    try:
        return Config(
            host=pick("host", "LOGSTREAM_HOST", str),
            http_port=pick("http_port", "HTTP_PORT", int),
            ws_port=pick("ws_port", "WS_PORT", int),
            poll_interval=pick("poll_interval", "POLL_INTERVAL", float),
            snapshot_limit=pick("snapshot_limit", "SNAPSHOT_LIMIT", int),
            overview_limit=pick("overview_limit", "OVERVIEW_LIMIT", int),
            send_timeout=pick("send_timeout", "SEND_TIMEOUT", float),
            queue_size=pick("queue_size", "SUBSCRIBER_QUEUE_SIZE", int),
            use_fs_events=pick("use_fs_events", "USE_FS_EVENTS", _parse_bool),
            sources=_sources_from(yaml_data),
        )
    except ConfigError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {e}") from e
