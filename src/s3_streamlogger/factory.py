"""Factory for building a stream logger from files or the environment."""
from __future__ import annotations

import os
from pathlib import Path

from pydantic import ValidationError

from .config import ENV_PREFIX, ConfigLoader, StreamLoggerConfig, config_from_env
from .stream import S3StreamLogger


def load_config(config_path: str | Path | None = None, **overrides) -> StreamLoggerConfig:
    """YAML when a path is given (or ``S3_STREAMLOGGER_CONFIG`` is set), else env vars.

    Overrides that are not ``None`` replace the loaded values.
    """
    updates = {name: value for name, value in overrides.items() if value is not None}
    path = config_path or os.getenv(f"{ENV_PREFIX}CONFIG")
    if not path:
        return config_from_env(overrides=updates)
    loaded = ConfigLoader(path).model
    if not updates:
        return loaded
    try:
        return StreamLoggerConfig(**{**loaded.model_dump(exclude_unset=True), **updates})
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def create_stream_logger(config_path: str | Path | None = None, **overrides) -> S3StreamLogger:
    return S3StreamLogger(load_config(config_path, **overrides))


__all__ = ["create_stream_logger", "load_config"]
