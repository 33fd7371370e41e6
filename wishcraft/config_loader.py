"""Utilities for loading the WishCraft configuration file."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_PORT = 6521


class StorageConfig(BaseModel):
    directory: str = "~/Documents/WishCraft"
    filename: str = "wishlists.json"

    @property
    def path(self) -> Path:
        return Path(self.directory).expanduser() / self.filename


class BridgeConfig(BaseModel):
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    await_writes: bool = Field(alias="await-writes", default=False)
    write_timeout_seconds: float = Field(alias="write-timeout-seconds", default=2.0)


class LoggingConfig(BaseModel):
    level: str = "INFO"


class AppConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _load_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_app_config(path: Path | None = None) -> AppConfig:
    """Return application config from `app.config.yaml`, or defaults when it is absent."""
    target = path or DATA_DIR / "app.config.yaml"
    if not target.exists():
        return AppConfig()
    data = _load_yaml(target)
    if not isinstance(data, dict):
        raise ValueError(f"{target.name} must contain a mapping of settings.")
    return AppConfig.model_validate(data)
