"""Typed configuration for the stream logger."""
from __future__ import annotations

import os
import socket
from datetime import timedelta
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .naming import default_name_format

DEFAULT_CONFIG_PATH = "config/s3_streamlogger.yaml"
ENV_PREFIX = "S3_STREAMLOGGER_"


def _default_environment() -> str:
    return os.getenv("ENVIRONMENT") or "development"


class StreamLoggerConfig(BaseModel):
    """Destination, thresholds and transport options of one logger.

    Durations are milliseconds and sizes are bytes.
    """

    bucket: str
    folder: Optional[str] = None
    tags: Dict[str, str] = Field(default_factory=dict)
    name_format: Optional[str] = Field(None, description="strftime template for object names")
    environment: str = Field(default_factory=_default_environment)
    hostname: str = Field(default_factory=socket.gethostname)
    upload_delay: int = Field(20 * 1000, gt=0)
    buffer_size: int = Field(10 * 1000, gt=0)
    rotate_every: int = Field(60 * 60 * 1000, gt=0)
    max_file_size: int = Field(200 * 1000, gt=0)
    compress: bool = False
    save_logs_in_json: bool = False
    storage_class: Optional[str] = None
    server_side_encryption: Optional[str] = None
    acl: Optional[str] = None
    encoding: str = "utf-8"

    # transport options, handed to boto3 untouched
    endpoint_url: Optional[str] = None
    region: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    session_token: Optional[str] = None
    use_ssl: bool = True
    addressing_style: Optional[str] = None

    @field_validator("bucket")
    @classmethod
    def _require_bucket(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("bucket must not be empty")
        return value.strip()

    @field_validator("tags", mode="before")
    @classmethod
    def _stringify_tags(cls, value):
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(key): str(item) for key, item in value.items()}
        return value

    @property
    def upload_delay_td(self) -> timedelta:
        return timedelta(milliseconds=self.upload_delay)

    @property
    def rotate_every_td(self) -> timedelta:
        return timedelta(milliseconds=self.rotate_every)

    def resolved_name_format(self) -> str:
        return self.name_format or default_name_format(
            self.environment,
            self.hostname,
            save_logs_in_json=self.save_logs_in_json,
            compress=self.compress,
        )


class ConfigLoader:
    """Loads a YAML file and validates it with Pydantic."""

    section = "s3_streamlogger"

    def __init__(self, path: str | Path | None = None) -> None:
        self.config_path = Path(path or os.getenv(f"{ENV_PREFIX}CONFIG", DEFAULT_CONFIG_PATH))
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        self.model = self._parse_yaml()

    def _parse_yaml(self) -> StreamLoggerConfig:
        raw: dict
        with self.config_path.open("r", encoding="utf-8") as fp:
            raw = yaml.safe_load(fp) or {}
        if isinstance(raw.get(self.section), dict):
            raw = raw[self.section]
        try:
            return StreamLoggerConfig(**raw)
        except ValidationError as exc:
            raise ValueError(f"Invalid configuration: {exc}") from exc


_ENV_FIELDS = {
    "BUCKET": "bucket",
    "FOLDER": "folder",
    "NAME_FORMAT": "name_format",
    "ENVIRONMENT": "environment",
    "UPLOAD_DELAY": "upload_delay",
    "BUFFER_SIZE": "buffer_size",
    "ROTATE_EVERY": "rotate_every",
    "MAX_FILE_SIZE": "max_file_size",
    "COMPRESS": "compress",
    "SAVE_LOGS_IN_JSON": "save_logs_in_json",
    "STORAGE_CLASS": "storage_class",
    "SERVER_SIDE_ENCRYPTION": "server_side_encryption",
    "ACL": "acl",
    "ENDPOINT_URL": "endpoint_url",
    "REGION": "region",
    "ACCESS_KEY_ID": "access_key",
    "SECRET_ACCESS_KEY": "secret_key",
    "SESSION_TOKEN": "session_token",
}


def _parse_tags(raw: str) -> Dict[str, str]:
    tags = {}
    for item in raw.split(","):
        if "=" not in item:
            continue
        key, value = item.split("=", 1)
        if key.strip():
            tags[key.strip()] = value.strip()
    return tags


def config_from_env(
    environ: Optional[Dict[str, str]] = None,
    overrides: Optional[Dict[str, object]] = None,
) -> StreamLoggerConfig:
    """Build a config from ``S3_STREAMLOGGER_*`` variables.

    ``S3_STREAMLOGGER_TAGS`` takes ``key=value`` pairs separated by commas.
    """
    environ = os.environ if environ is None else environ
    values: Dict[str, object] = {}
    for suffix, field_name in _ENV_FIELDS.items():
        value = environ.get(ENV_PREFIX + suffix)
        if value:
            values[field_name] = value
    tags = environ.get(ENV_PREFIX + "TAGS")
    if tags:
        values["tags"] = _parse_tags(tags)
    values.update(overrides or {})
    if not values.get("bucket"):
        raise RuntimeError(f"{ENV_PREFIX}BUCKET is required")
    try:
        return StreamLoggerConfig(**values)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


__all__ = [
    "ConfigLoader",
    "StreamLoggerConfig",
    "config_from_env",
]
