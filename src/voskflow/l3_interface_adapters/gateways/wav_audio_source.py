"""Gateway: WAV file audio source — header validation and lazy chunked reads."""

from __future__ import annotations

import os
import struct
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from voskflow.l1_entities.audio_constants import DEFAULT_CHUNK_SIZE, SAMPLE_WIDTH, WAVE_FORMAT_EXTENSIBLE
from voskflow.l1_entities.audio_format import AudioFormat
from voskflow.l1_entities.errors import ResourceNotFoundError, UnsupportedAudioFormatError

_RIFF_HEADER = struct.Struct('<4sI4s')
_CHUNK_HEADER = struct.Struct('<4sI')
_FMT_BODY = struct.Struct('<HHIIHH')  # format, channels, rate, byte rate, block align, bits


class WavChunkStream:
    """Single-pass iterator over the ``data`` chunk of a WAV file.

    The file is opened on first iteration and read *chunk_size* bytes at a
    time, so memory use is bounded regardless of file length. Iterating a
    second time raises RuntimeError.
    """

    def __init__(self, path: Path, data_offset: int, data_size: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._path = path
        self._data_offset = data_offset
        self._data_size = data_size
        self._chunk_size = chunk_size
        self._consumed = False
        self._fh: BinaryIO | None = None

    @property
    def data_size(self) -> int:
        return self._data_size

    def __iter__(self) -> Iterator[bytes]:
        if self._consumed:
            raise RuntimeError(f'Chunk stream for {self._path} has already been consumed')
        self._consumed = True
        return self._read_chunks()

    def _read_chunks(self) -> Iterator[bytes]:
        self._fh = self._path.open('rb')
        try:
            self._fh.seek(self._data_offset)
            remaining = self._data_size
            while remaining > 0:
                data = self._fh.read(min(self._chunk_size, remaining))
                if not data:
                    break
                remaining -= len(data)
                yield data
        finally:
            self.close()

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None


def _scan_wav(fh: BinaryIO, path: Path) -> tuple[AudioFormat, int, int]:
    """Walk RIFF chunks; return (format, data offset, data size)."""
    header = fh.read(_RIFF_HEADER.size)
    if len(header) < _RIFF_HEADER.size:
        raise UnsupportedAudioFormatError(str(path), reason='file too short to be a WAV container')
    riff, _size, wave_id = _RIFF_HEADER.unpack(header)
    if riff != b'RIFF' or wave_id != b'WAVE':
        raise UnsupportedAudioFormatError(str(path), reason='not a RIFF/WAVE container')

    audio_format: AudioFormat | None = None
    while True:
        chunk_header = fh.read(_CHUNK_HEADER.size)
        if len(chunk_header) < _CHUNK_HEADER.size:
            raise UnsupportedAudioFormatError(str(path), reason='missing fmt or data chunk')
        chunk_id, chunk_size = _CHUNK_HEADER.unpack(chunk_header)

        if chunk_id == b'fmt ':
            body = fh.read(chunk_size)
            if len(body) < _FMT_BODY.size:
                raise UnsupportedAudioFormatError(str(path), reason='truncated fmt chunk')
            fmt_tag, channels, sample_rate, _byte_rate, _block_align, bits = _FMT_BODY.unpack_from(body)
            if fmt_tag == WAVE_FORMAT_EXTENSIBLE and len(body) >= 26:
                # first two bytes of the sub-format GUID carry the real format tag
                (fmt_tag,) = struct.unpack_from('<H', body, 24)
            audio_format = AudioFormat(
                audio_format=fmt_tag,
                sample_rate=sample_rate,
                channels=channels,
                bits_per_sample=bits,
            )
            if chunk_size % 2:
                fh.read(1)
        elif chunk_id == b'data':
            if audio_format is None:
                raise UnsupportedAudioFormatError(str(path), reason='data chunk precedes fmt chunk')
            data_offset = fh.tell()
            file_size = os.fstat(fh.fileno()).st_size
            return audio_format, data_offset, min(chunk_size, file_size - data_offset)
        else:
            fh.seek(chunk_size + (chunk_size % 2), os.SEEK_CUR)


def _check_readable(path: Path) -> None:
    if not path.exists():
        raise ResourceNotFoundError(str(path), 'audio file not found')
    if not path.is_file() or not os.access(path, os.R_OK):
        raise ResourceNotFoundError(str(path), 'audio file is not readable')


def read_wav_header(path: str | Path) -> AudioFormat:
    """Return the format declared by the WAV header at *path*."""
    path = Path(path)
    _check_readable(path)
    with path.open('rb') as fh:
        audio_format, _offset, _size = _scan_wav(fh, path)
    return audio_format


def open_audio_file(
    path: str | Path,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> tuple[AudioFormat, WavChunkStream]:
    """Validate the WAV header at *path* and return a lazy chunk stream over its samples.

    Raises:
        ResourceNotFoundError: file missing or unreadable.
        UnsupportedAudioFormatError: not a WAV container, or not mono 16-bit
            integer PCM. Raised before any chunk is produced.
        ValueError: *chunk_size* would split a sample.
    """
    if chunk_size <= 0 or chunk_size % SAMPLE_WIDTH:
        raise ValueError(f'chunk_size must be a positive multiple of {SAMPLE_WIDTH} bytes, got {chunk_size}')
    path = Path(path)
    _check_readable(path)
    with path.open('rb') as fh:
        audio_format, data_offset, data_size = _scan_wav(fh, path)

    if not audio_format.is_mono_pcm16:
        raise UnsupportedAudioFormatError(
            str(path),
            audio_format=audio_format.audio_format,
            sample_rate=audio_format.sample_rate,
            channels=audio_format.channels,
            bits_per_sample=audio_format.bits_per_sample,
        )
    return audio_format, WavChunkStream(path, data_offset, data_size, chunk_size)
