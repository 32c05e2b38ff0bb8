"""Buffered, time and size rotated log shipping to S3."""
from importlib.metadata import version, PackageNotFoundError

from .config import ConfigLoader, StreamLoggerConfig, config_from_env
from .errors import SerializationError, StreamLoggerError, UploadError
from .handler import JsonFormatter, S3StreamHandler
from .stream import S3StreamLogger

try:
    __version__ = version("s3-streamlogger")
except PackageNotFoundError:  # pragma: no cover - during local dev without install
    __version__ = "0.0.0"

__all__ = [
    "ConfigLoader",
    "JsonFormatter",
    "S3StreamHandler",
    "S3StreamLogger",
    "SerializationError",
    "StreamLoggerConfig",
    "StreamLoggerError",
    "UploadError",
    "__version__",
    "config_from_env",
]
