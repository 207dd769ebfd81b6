"""File and environment configuration for server watchers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from server_watcher.configuration import ServerWatcherConfiguration
from server_watcher.watcher import ServerWatcher


class ServerEntrySettings(BaseModel):
    """One server to watch."""
    name: Optional[str] = Field(default=None, description="Watcher name, defaults to the hostname")
    hostname: str = Field(description="Hostname or IP address, without protocol")
    port: Optional[int] = Field(default=None, description="TCP port; omit for ping-only checks")
    timeout_seconds: Optional[float] = Field(default=None, description="Per-server timeout override")
    group: Optional[str] = Field(default=None, description="Optional watcher group")


class WatcherSettings(BaseModel):
    """Top-level settings for the server watcher runner."""
    log_level: str = Field(default="INFO", description="Logging level")
    default_timeout_seconds: Optional[float] = Field(default=None, description="Timeout for servers without their own")
    servers: list[ServerEntrySettings] = Field(default_factory=list, description="Servers to watch")


def load_settings(config_path: Optional[str] = None) -> WatcherSettings:
    """Load settings from a YAML file, then apply environment overrides."""
    if config_path is None:
        config_path = os.getenv("SERVER_WATCHER_CONFIG", "config/server_watcher.yaml")

    config_data: dict = {}
    path = Path(config_path)
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}
        if not isinstance(config_data, dict):
            raise ValueError("Config YAML must be a mapping")

    log_level = os.getenv("LOG_LEVEL")
    if log_level:
        config_data["log_level"] = log_level
    timeout = os.getenv("SERVER_WATCHER_TIMEOUT")
    if timeout:
        config_data["default_timeout_seconds"] = float(timeout)

    return WatcherSettings(**config_data)


def build_watchers(settings: WatcherSettings) -> list[ServerWatcher]:
    watchers: list[ServerWatcher] = []
    for entry in settings.servers:
        builder = ServerWatcherConfiguration.create(entry.hostname, entry.port)
        timeout = entry.timeout_seconds if entry.timeout_seconds is not None else settings.default_timeout_seconds
        if timeout is not None:
            builder.with_timeout(timeout)
        name = entry.name or entry.hostname
        watchers.append(ServerWatcher.create(name, builder.build(), group=entry.group))
    return watchers
