"""Packaging of buffered chunks into an upload body."""
from __future__ import annotations

import gzip
import json
import math
import zlib
from dataclasses import dataclass
from typing import Any, Iterable, List, Union

from .errors import SerializationError


@dataclass(frozen=True)
class Parsed:
    """A chunk that decoded to a JSON value."""

    value: Any


@dataclass(frozen=True)
class Raw:
    """A chunk kept as text because it is not valid JSON."""

    text: str


Entry = Union[Parsed, Raw]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not JSON")


def _finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"number {text} overflows a float")
    return value


def parse_entry(chunk: bytes, encoding: str = "utf-8") -> Entry:
    """Decode one chunk; anything strict JSON would reject stays raw text."""
    text = chunk.decode(encoding, errors="replace")
    try:
        return Parsed(json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float))
    except (ValueError, RecursionError):
        return Raw(text)


def _entry_value(entry: Entry) -> Any:
    if isinstance(entry, Parsed):
        return entry.value
    return entry.text


def to_json_array(chunks: Iterable[bytes], encoding: str = "utf-8") -> bytes:
    """One array element per chunk, malformed chunks preserved as strings.

    Non-ASCII text is kept as UTF-8. Lone surrogates cannot be encoded, so
    they are written as \\uXXXX escapes, which only occur inside JSON strings.
    """
    values: List[Any] = [_entry_value(parse_entry(chunk, encoding)) for chunk in chunks]
    text = json.dumps(values, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return text.encode("utf-8", errors="backslashreplace")


def compress_payload(body: bytes) -> bytes:
    try:
        return gzip.compress(body)
    except (OSError, zlib.error, MemoryError) as exc:
        raise SerializationError(f"gzip compression failed: {exc}") from exc


def prepare_payload(
    chunks: Iterable[bytes],
    save_logs_in_json: bool = False,
    compress: bool = False,
    encoding: str = "utf-8",
) -> bytes:
    if save_logs_in_json:
        body = to_json_array(chunks, encoding)
    else:
        body = b"".join(chunks)
    if compress:
        body = compress_payload(body)
    return body


__all__ = [
    "Entry",
    "Parsed",
    "Raw",
    "compress_payload",
    "parse_entry",
    "prepare_payload",
    "to_json_array",
]
