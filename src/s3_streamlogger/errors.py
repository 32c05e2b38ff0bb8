"""Error types raised by the stream logger."""
from __future__ import annotations


class StreamLoggerError(Exception):
    """Base class for flush failures."""


class SerializationError(StreamLoggerError):
    """The buffered payload could not be prepared (compression failed)."""


class UploadError(StreamLoggerError):
    """The object store rejected or failed the put."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"Upload of {key} failed: {message}")
        self.key = key


__all__ = [
    "StreamLoggerError",
    "SerializationError",
    "UploadError",
]
