"""Configuration management for the comment notifier."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr


class ApiConfig(BaseModel):
    """LBRY JSON-RPC endpoint settings."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(default="http://127.0.0.1:5279", description="JSON-RPC endpoint of the SDK")
    page_size: int = Field(default=50, ge=1, le=1000, description="Items requested per page")
    timeout: float = Field(default=30.0, gt=0, description="Seconds allowed per request")


class StorageConfig(BaseModel):
    """Comment store settings."""

    model_config = ConfigDict(frozen=True)

    database_path: str = Field(default="data.db", description="Path to SQLite database file")


class SmtpConfig(BaseModel):
    """Outgoing mail settings."""

    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = Field(default=1025, ge=1, le=65535)
    from_address: str = "notifier@lbry.local"
    to_address: str = "user@lbry.local"
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    starttls: bool = False
    timeout: float = Field(default=30.0, gt=0)


class WatcherConfig(BaseModel):
    """Scheduling behavior."""

    model_config = ConfigDict(frozen=True)

    interval: int = Field(default=3600, ge=1, description="Seconds between reconciliation runs")
    run_on_start: bool = Field(default=True, description="Run once immediately at startup")
    account_concurrency: int = Field(
        default=1, ge=1, le=32, description="Account subtrees walked in parallel"
    )


class Config(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(frozen=True)

    api: ApiConfig = ApiConfig()
    storage: StorageConfig = StorageConfig()
    smtp: SmtpConfig = SmtpConfig()
    watcher: WatcherConfig = WatcherConfig()


def expand_env_vars(obj):
    """Replace ``${VAR_NAME}`` strings with the value of that environment variable."""
    if isinstance(obj, dict):
        return {k: expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [expand_env_vars(item) for item in obj]
    elif isinstance(obj, str) and obj.startswith("${") and obj.endswith("}"):
        env_var = obj[2:-1]
        value = os.getenv(env_var)
        if value is None:
            raise ValueError(f"Environment variable '{env_var}' is not set")
        return value
    return obj


def load_config(config_path: str | Path = "config.yaml") -> Config:
    """Load and validate configuration from YAML file.

    Supports ${VAR_NAME} syntax for environment variable expansion. Sections
    left out of the file fall back to their defaults.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Validated, immutable Config object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValidationError: If config is invalid.
        ValueError: If referenced environment variable is not set.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {path}\n"
            "Copy config.example.yaml to config.yaml and fill in your values."
        )

    with path.open() as f:
        raw_config = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")

    return Config(**expand_env_vars(raw_config))
