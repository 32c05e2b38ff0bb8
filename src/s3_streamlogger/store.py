"""Object-store client construction."""
from __future__ import annotations

from typing import Any, Mapping, Protocol

import boto3
from botocore.client import BaseClient
from botocore.config import Config

from .config import StreamLoggerConfig


class ObjectStore(Protocol):
    """The single operation the stream logger needs; a boto3 S3 client fits."""

    def put_object(self, **params: Any) -> Mapping[str, Any]:
        """Store ``Body`` under ``Bucket``/``Key``, replacing any existing object."""


def build_s3_client(config: StreamLoggerConfig) -> BaseClient:
    session = boto3.session.Session()
    client_config = None
    if config.addressing_style:
        client_config = Config(s3={"addressing_style": config.addressing_style})
    return session.client(
        "s3",
        endpoint_url=config.endpoint_url,
        region_name=config.region,
        use_ssl=config.use_ssl,
        aws_access_key_id=config.access_key,
        aws_secret_access_key=config.secret_key,
        aws_session_token=config.session_token,
        config=client_config,
    )


__all__ = ["ObjectStore", "build_s3_client"]
