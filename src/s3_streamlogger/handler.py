"""logging integration: ship log records through an S3StreamLogger."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from .config import StreamLoggerConfig
from .stream import S3StreamLogger

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, suited to ``save_logs_in_json``."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class _SkipOwnRecords(logging.Filter):
    # records about our own uploads would otherwise feed back into the stream
    def filter(self, record: logging.LogRecord) -> bool:
        return not record.name.startswith("s3_streamlogger")


class S3StreamHandler(logging.StreamHandler):
    """StreamHandler whose stream is an :class:`S3StreamLogger`.

    Every formatted record reaches the stream as a single write, so JSON
    packaging stores one array element per record.
    """

    def __init__(
        self,
        stream: Optional[S3StreamLogger] = None,
        config: Optional[StreamLoggerConfig] = None,
    ) -> None:
        if stream is None:
            if config is None:
                raise ValueError("S3StreamHandler needs a stream or a config")
            stream = S3StreamLogger(config)
        super().__init__(stream)
        self.addFilter(_SkipOwnRecords())
        if stream.config.save_logs_in_json:
            self.setFormatter(JsonFormatter())
            self.terminator = ""
        else:
            self.setFormatter(logging.Formatter(DEFAULT_FORMAT))

    def close(self) -> None:
        self.acquire()
        try:
            if not self.stream.closed:
                self.stream.close()
        finally:
            self.release()
        super().close()


__all__ = ["JsonFormatter", "S3StreamHandler"]
