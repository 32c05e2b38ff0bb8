"""Object key naming for log epochs."""
from __future__ import annotations

from datetime import datetime, timezone


def normalize_folder(folder: str | None) -> str:
    """Return ``folder`` with exactly one trailing slash, or ``""`` when unset."""
    if not folder:
        return ""
    return folder.rstrip("/") + "/"


def _escape(value: str) -> str:
    return value.replace("%", "%%")


def default_name_format(
    environment: str,
    hostname: str,
    save_logs_in_json: bool = False,
    compress: bool = False,
) -> str:
    """strftime template used when no ``name_format`` is configured.

    Renders like ``2024-Jun-01-13-05-production-web01.log.gz``.
    """
    extension = ".json" if save_logs_in_json else ".log"
    if compress:
        extension += ".gz"
    return f"%Y-%b-%d-%H-%M-{_escape(environment)}-{_escape(hostname)}{extension}"


def object_key(created_at: datetime, folder: str | None, name_format: str) -> str:
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    stamp = created_at.astimezone(timezone.utc).strftime(name_format)
    return normalize_folder(folder) + stamp


__all__ = [
    "default_name_format",
    "normalize_folder",
    "object_key",
]
