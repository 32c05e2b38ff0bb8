"""Shared fixtures: a controllable clock and stream loggers backed by a mock S3 client."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

try:
    from s3_streamlogger.env import load_env
except ImportError as exc:
    raise RuntimeError(
        "s3_streamlogger is not importable. Activate your virtualenv and run "
        "'pip install -e .[test]' before running pytest."
    ) from exc

from s3_streamlogger.config import StreamLoggerConfig
from s3_streamlogger.stream import S3StreamLogger

# Load default runtime env first, then overlay .env.test if provided
load_env(overlay=".env.test")


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, milliseconds: int) -> None:
        self.now += timedelta(milliseconds=milliseconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def s3_client() -> MagicMock:
    client = MagicMock()
    client.put_object.return_value = {"ETag": '"etag"'}
    return client


def _config(**overrides) -> StreamLoggerConfig:
    values = {
        "bucket": "logs-bucket",
        "environment": "test",
        "hostname": "host",
        # sub-second resolution so rotations in tests produce distinct keys
        "name_format": "%Y%m%d-%H%M%S-%f.log",
    }
    values.update(overrides)
    return StreamLoggerConfig(**values)


@pytest.fixture
def make_stream(s3_client, clock):
    created = []

    def _make(use_clock: bool = True, **overrides) -> S3StreamLogger:
        stream = S3StreamLogger(
            _config(**overrides),
            client=s3_client,
            clock=clock if use_clock else None,
        )
        created.append(stream)
        return stream

    yield _make
    # finalisation flushes should not hit injected failures
    s3_client.put_object.side_effect = None
    for stream in created:
        if not stream.closed:
            stream.close()


@pytest.fixture
def make_config():
    return _config
