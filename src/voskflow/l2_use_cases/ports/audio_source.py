"""Port: PCM chunk stream."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol


class ChunkStream(Protocol):
    """Finite, single-pass sequence of mono 16-bit PCM byte chunks.

    Not restartable: iterating a second time is a caller error.
    """

    def __iter__(self) -> Iterator[bytes]: ...

    def close(self) -> None:
        """Release any underlying file handle."""
        ...
