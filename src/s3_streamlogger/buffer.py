"""In-memory accumulation of written chunks for the current epoch."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence


@dataclass(frozen=True)
class RollbackSnapshot:
    """State captured at the start of one flush attempt."""

    unwritten: int
    key: str
    chunks: List[bytes] = field(default_factory=list)


class ChunkBuffer:
    """Ordered chunks whose concatenation is the body of the current object.

    Not thread-safe on its own; the owning stream serializes access.
    """

    def __init__(self) -> None:
        self._chunks: List[bytes] = []

    def append(self, chunk: bytes) -> None:
        if chunk:
            self._chunks.append(chunk)

    def total_bytes(self) -> int:
        return sum(len(chunk) for chunk in self._chunks)

    def chunks(self) -> List[bytes]:
        return list(self._chunks)

    def snapshot(self, rotating: bool) -> List[bytes]:
        """Detach every live chunk when ``rotating``; otherwise leave them in place.

        Writes that arrive after a rotating snapshot start the next epoch's
        sequence.
        """
        if not rotating:
            return []
        detached, self._chunks = self._chunks, []
        return detached

    def restore(self, chunks: Sequence[bytes]) -> None:
        """Put a detached snapshot back in front of the live chunks."""
        if chunks:
            self._chunks = list(chunks) + self._chunks


__all__ = ["ChunkBuffer", "RollbackSnapshot"]
