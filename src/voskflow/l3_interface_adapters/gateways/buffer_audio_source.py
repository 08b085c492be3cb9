"""Gateway: in-memory audio buffer source."""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np

AudioBuffer = bytes | bytearray | memoryview | np.ndarray


def _to_pcm16_bytes(buffer: AudioBuffer) -> bytes:
    """Raw bytes pass through untouched; float arrays in [-1, 1] are scaled to int16."""
    if not isinstance(buffer, np.ndarray):
        return bytes(buffer)
    samples = buffer.flatten()
    if samples.dtype == np.int16:
        return samples.astype('<i2', copy=False).tobytes()
    if np.issubdtype(samples.dtype, np.floating):
        clipped = np.clip(samples, -1.0, 1.0)
        return (clipped * 32767.0).astype('<i2').tobytes()
    raise TypeError(f'Unsupported sample dtype {samples.dtype}; expected int16 or float')


class BufferChunkStream:
    """Yields the whole buffer as a single chunk, once. No header validation."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._consumed = False

    def __iter__(self) -> Iterator[bytes]:
        if self._consumed:
            raise RuntimeError('Buffer chunk stream has already been consumed')
        self._consumed = True
        return iter([self._data] if self._data else [])

    def close(self) -> None:
        self._data = b''


def wrap_audio_buffer(buffer: AudioBuffer) -> BufferChunkStream:
    """Wrap raw mono 16-bit PCM (or a numpy sample array) as a one-chunk stream.

    A buffer carries no container header, so the caller is responsible for
    its sample rate, channel count and encoding.
    """
    return BufferChunkStream(_to_pcm16_bytes(buffer))
