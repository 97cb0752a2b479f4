"""Configuration loader: .hostbot/config.yaml + .env + env vars."""
from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

_DEFAULTS: dict[str, Any] = {
    "log_dir": "",
    "telegram": {
        "token": "",
        "user_id": "",
    },
    "sources": {
        "uptime": "/proc/uptime",
        "cpu_temp": "/sys/class/thermal/thermal_zone0/temp",
        "meminfo": "/proc/meminfo",
        "disk_mount": "/",
    },
    "reboot": {
        "command": ["sudo", "reboot"],
        "delay_s": 1.0,
    },
    "dispatch": {
        # False: any sender's message cancels a pending reboot
        "scope_cancel_to_operator": False,
    },
}

_TRUTHY = ("1", "true", "yes", "y", "on")


class ConfigError(Exception):
    """Raised when the bot cannot be configured."""


def _deep_merge(base: dict, override: dict) -> dict:
    merged = base.copy()
    for k, v in override.items():
        if k in merged and isinstance(merged[k], dict) and isinstance(v, dict):
            merged[k] = _deep_merge(merged[k], v)
        else:
            merged[k] = v
    return merged


class Config:
    """Immutable-ish config object with attribute access."""

    def __init__(self, data: dict[str, Any]) -> None:
        self._data = data

    def __getattr__(self, name: str) -> Any:
        try:
            v = self._data[name]
        except KeyError:
            raise AttributeError(name)
        if isinstance(v, dict):
            return Config(v)
        return v

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def as_dict(self) -> dict:
        return dict(self._data)

    def __repr__(self) -> str:
        return f"Config({self._data!r})"


def _env_overrides() -> dict[str, Any]:
    """Pull config from env vars: TELEGRAM_BOT_TOKEN, TELEGRAM_USER_ID, etc."""
    overrides: dict[str, Any] = {}
    mapping = {
        "TELEGRAM_BOT_TOKEN": ("telegram", "token"),
        "TELEGRAM_USER_ID": ("telegram", "user_id"),
        "HOSTBOT_LOG_DIR": ("log_dir",),
        "HOSTBOT_REBOOT_DELAY": ("reboot", "delay_s"),
        "HOSTBOT_SCOPE_CANCEL": ("dispatch", "scope_cancel_to_operator"),
    }
    for env_key, path in mapping.items():
        val = os.environ.get(env_key)
        if val is None:
            continue
        d = overrides
        for part in path[:-1]:
            d = d.setdefault(part, {})
        d[path[-1]] = val
    return overrides


def load_env_file(env_file: str | Path | None = None, project_dir: str | Path | None = None) -> bool:
    """Load a .env file into os.environ without overriding variables already set.

    An explicitly named file must exist. The implicit ``<project_dir>/.env`` is
    optional. Returns True if a file was loaded.
    """
    if env_file:
        path = Path(env_file)
        if not path.is_file():
            raise ConfigError(f"Env file not found: {path}")
        return load_dotenv(path, override=False)
    path = Path(project_dir or ".") / ".env"
    if path.is_file():
        return load_dotenv(path, override=False)
    return False


def load_config(project_dir: str | Path | None = None) -> Config:
    """Load config from .hostbot/config.yaml merged with defaults and env."""
    base = dict(_DEFAULTS)
    if project_dir:
        cfg_path = Path(project_dir) / ".hostbot" / "config.yaml"
        if cfg_path.exists():
            try:
                with open(cfg_path) as f:
                    file_cfg = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {cfg_path}: {e}") from e
            if not isinstance(file_cfg, dict):
                raise ConfigError(f"{cfg_path} must contain a mapping")
            base = _deep_merge(base, file_cfg)
    base = _deep_merge(base, _env_overrides())
    return Config(base)


@dataclass(frozen=True)
class BotSettings:
    """Validated values the bot needs at runtime."""
    token: str
    user_id: int
    uptime_path: str
    cpu_temp_path: str
    meminfo_path: str
    disk_mount: str
    reboot_command: tuple[str, ...]
    reboot_delay_s: float
    scope_cancel_to_operator: bool
    log_dir: str = ""


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def settings_from_config(cfg: Config) -> BotSettings:
    """Validate a Config into BotSettings. Raise ConfigError on bad input."""
    token = str(cfg.telegram.get("token") or "").strip()
    if not token:
        raise ConfigError("Missing TELEGRAM_BOT_TOKEN (or telegram.token in config)")

    raw_id = str(cfg.telegram.get("user_id") or "").strip()
    if not raw_id:
        raise ConfigError("Missing TELEGRAM_USER_ID (or telegram.user_id in config)")
    try:
        user_id = int(raw_id)
    except ValueError:
        raise ConfigError(f"TELEGRAM_USER_ID must be an integer, got {raw_id!r}") from None

    command = cfg.reboot.get("command")
    if isinstance(command, str):
        command = command.split()
    if not command:
        raise ConfigError("reboot.command must not be empty")

    try:
        delay = float(cfg.reboot.get("delay_s", 0))
    except (TypeError, ValueError):
        raise ConfigError(f"reboot.delay_s must be a number, got {cfg.reboot.get('delay_s')!r}") from None
    if not math.isfinite(delay):
        raise ConfigError(f"reboot.delay_s must be finite, got {delay!r}")

    sources = cfg.sources
    return BotSettings(
        token=token,
        user_id=user_id,
        uptime_path=sources.uptime,
        cpu_temp_path=sources.cpu_temp,
        meminfo_path=sources.meminfo,
        disk_mount=sources.disk_mount,
        reboot_command=tuple(str(c) for c in command),
        reboot_delay_s=max(delay, 0.0),
        scope_cancel_to_operator=_as_bool(cfg.dispatch.get("scope_cancel_to_operator", False)),
        log_dir=str(cfg.get("log_dir") or ""),
    )


def load_settings(
    project_dir: str | Path | None = ".",
    env_file: str | Path | None = None,
) -> BotSettings:
    """Load .env, config file and environment, then validate."""
    load_env_file(env_file, project_dir)
    return settings_from_config(load_config(project_dir))
