"""
Collector configuration.

Settings are read once at startup from a JSON file and are immutable for the
lifetime of the process. They are passed explicitly to everything that needs
them; nothing reads configuration from module-level globals.

Config file resolution
----------------------
1. ``path`` argument to load_settings()
2. CRASH_COLLECTOR_CONFIG environment variable (a .env file is honoured)
3. ``config.json`` in the working directory

Example config.json::

    {
      "host": "0.0.0.0",
      "port": 8080,
      "email_from": "ACRA Collector <crashes@example.com>",
      "email_to": "dev@example.com",
      "smtp_host": "smtp.example.com",
      "smtp_port": 587,
      "smtp_user": "crashes@example.com",
      "smtp_pass": "secret"
    }
"""

import json
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from crash_collector.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.json"
CONFIG_PATH_ENV = "CRASH_COLLECTOR_CONFIG"


class Settings(BaseModel):
    """Process-wide, read-only collector settings."""

    model_config = {"frozen": True, "extra": "ignore"}

    # HTTP listener
    host: str
    port: int = Field(ge=0, le=65535)

    # Notification addresses
    email_from: str
    email_to: str

    # SMTP server and credentials
    smtp_host: str
    smtp_port: int = Field(ge=0, le=65535)
    smtp_user: str
    smtp_pass: str

    # Optional knobs; defaults match the behaviour of the first collector release.
    crash_log_path: str = "crashes.txt"
    workers: int = Field(default=4, ge=1)
    # "starttls" upgrades a plain connection and refuses servers without STARTTLS;
    # "tls" is implicit TLS (usually port 465). There is no unencrypted mode.
    smtp_security: Literal["starttls", "tls"] = "starttls"
    smtp_timeout: Optional[float] = Field(default=None, gt=0)
    report_path: str = "/report"

    @field_validator("report_path")
    @classmethod
    def _check_report_path(cls, value: str) -> str:
        # Mounted as a router prefix: must start with "/" and not end with one
        if not value.startswith("/") or value.endswith("/"):
            raise ValueError(
                f"report_path must start with '/' and not end with '/', got {value!r}"
            )
        return value


def resolve_config_path(path: Optional[str] = None) -> Path:
    """Return the config file path from the argument, env var, or default."""
    if path:
        return Path(path)
    load_dotenv()
    return Path(os.getenv(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load and validate the collector configuration.

    Raises:
        ConfigError: if the file is missing, unreadable, not JSON, or does not
            match the Settings schema.
    """
    config_path = resolve_config_path(path)

    try:
        raw = config_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {config_path}") from e
    except OSError as e:
        raise ConfigError(f"Could not read config file {config_path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file {config_path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a JSON object")

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {config_path}: {e}") from e

    logger.info(f"Loaded configuration from {config_path}")
    return settings
