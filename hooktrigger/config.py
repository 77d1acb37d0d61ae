"""
HookConfig: YAML loader + environment overrides (env always wins).
Supplies HTTP client options, task defaults, storage root and logging.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

from hooktrigger.core.errors import ConfigurationError
from hooktrigger.core.models import DEFAULT_POLL_INTERVAL, DEFAULT_TIMEOUT, ContentType
from hooktrigger.utils.durations import parse_duration

PACKAGE_DIR = Path(__file__).parent
DEFAULT_CONFIG_PATH = PACKAGE_DIR / "config.yaml"


@dataclass
class HttpConfig:
    timeout_seconds: float = 30.0
    follow_redirects: bool = True
    verify_tls: bool = True


@dataclass
class TaskDefaults:
    wait: bool = True
    poll_frequency: timedelta = DEFAULT_POLL_INTERVAL
    request_timeout: timedelta = DEFAULT_TIMEOUT
    content_type: ContentType = ContentType.BINARY


@dataclass
class HookConfig:
    # System
    log_level: str = "INFO"
    log_dir: Path | None = None
    storage_root: Path = field(default_factory=Path.cwd)

    # Components
    http: HttpConfig = field(default_factory=HttpConfig)
    defaults: TaskDefaults = field(default_factory=TaskDefaults)

    @classmethod
    def load(cls, yaml_path: str | Path | None = None) -> "HookConfig":
        """Load config from YAML file + environment variable overrides."""
        cfg = cls()

        if yaml_path is None:
            yaml_path = os.environ.get("HOOKTRIGGER_CONFIG") or DEFAULT_CONFIG_PATH
        yaml_path = Path(yaml_path)
        if yaml_path.exists():
            with yaml_path.open() as f:
                data: dict[str, Any] = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ConfigurationError(f"{yaml_path} must contain a mapping")
            cfg._apply_yaml(data)

        cfg._apply_env()
        return cfg

    def _apply_yaml(self, data: dict[str, Any]) -> None:
        for key, val in data.items():
            if key == "http" and isinstance(val, dict):
                for k, v in val.items():
                    if hasattr(self.http, k):
                        setattr(self.http, k, v)
            elif key == "defaults" and isinstance(val, dict):
                self._apply_defaults(val)
            elif key == "log_dir":
                self.log_dir = Path(val) if val else None
            elif key == "storage_root":
                self.storage_root = Path(val) if val else Path.cwd()
            elif hasattr(self, key):
                setattr(self, key, val)

    def _apply_defaults(self, val: dict[str, Any]) -> None:
        try:
            if "wait" in val:
                self.defaults.wait = bool(val["wait"])
            if "poll_frequency" in val:
                self.defaults.poll_frequency = parse_duration(val["poll_frequency"])
            if "request_timeout" in val:
                self.defaults.request_timeout = parse_duration(val["request_timeout"])
        except ValueError as exc:
            raise ConfigurationError(f"Invalid defaults: {exc}") from exc
        if "content_type" in val:
            self.defaults.content_type = ContentType.parse(val["content_type"])

    def _apply_env(self) -> None:
        env_map = {
            "HOOKTRIGGER_LOG_LEVEL": ("log_level", str),
            "HOOKTRIGGER_LOG_DIR": ("log_dir", Path),
            "HOOKTRIGGER_STORAGE_ROOT": ("storage_root", Path),
            "HOOKTRIGGER_HTTP_TIMEOUT": ("http.timeout_seconds", float),
        }
        for env_key, (path, cast) in env_map.items():
            val = os.environ.get(env_key, "")
            if not val:
                continue
            try:
                value = cast(val)
            except ValueError as exc:
                raise ConfigurationError(f"{env_key}: {exc}") from exc
            if path.startswith("http."):
                setattr(self.http, path.split(".", 1)[1], value)
            else:
                setattr(self, path, value)


# Module-level singleton, loaded on first use
_config: HookConfig | None = None


def get_config() -> HookConfig:
    global _config
    if _config is None:
        _config = HookConfig.load()
    return _config


def reload_config(yaml_path: str | Path | None = None) -> HookConfig:
    global _config
    _config = HookConfig.load(yaml_path)
    return _config
