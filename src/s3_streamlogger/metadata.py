"""Per-upload object metadata."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional
from urllib.parse import quote, urlencode

from .config import StreamLoggerConfig

PLAIN_TEXT = "text/plain"


def build_tagging(tags: Mapping[str, str]) -> Optional[str]:
    """S3 tagging string; ``None`` rather than ``""`` when there are no tags."""
    if not tags:
        return None
    return urlencode(list(tags.items()), quote_via=quote)


@dataclass(frozen=True)
class ObjectMetadata:
    tagging: Optional[str] = None
    storage_class: Optional[str] = None
    server_side_encryption: Optional[str] = None
    acl: Optional[str] = None
    content_type: Optional[str] = None

    @classmethod
    def build(cls, config: StreamLoggerConfig) -> "ObjectMetadata":
        return cls(
            tagging=build_tagging(config.tags),
            storage_class=config.storage_class,
            server_side_encryption=config.server_side_encryption,
            acl=config.acl,
            # text/plain lets browsers preview uncompressed logs
            content_type=None if config.compress else PLAIN_TEXT,
        )

    def to_params(self) -> Dict[str, str]:
        """Keyword arguments for ``put_object``; unset fields are left out."""
        params = {
            "Tagging": self.tagging,
            "StorageClass": self.storage_class,
            "ServerSideEncryption": self.server_side_encryption,
            "ACL": self.acl,
            "ContentType": self.content_type,
        }
        return {name: value for name, value in params.items() if value is not None}


__all__ = ["ObjectMetadata", "build_tagging"]
