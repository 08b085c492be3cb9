"""Domain error types."""

from __future__ import annotations


class TranscriptionError(Exception):
    """Base class for every classified pipeline failure."""


class ResourceNotFoundError(TranscriptionError):
    """Raised when a model directory or audio file is missing or unreadable."""

    def __init__(self, path: str, reason: str = 'not found') -> None:
        super().__init__(f'{path}: {reason}')
        self.path = path


class UnsupportedAudioFormatError(TranscriptionError):
    """Raised when an audio container is not mono 16-bit integer PCM."""

    def __init__(
        self,
        path: str,
        *,
        audio_format: int | None = None,
        sample_rate: int | None = None,
        channels: int | None = None,
        bits_per_sample: int | None = None,
        reason: str = '',
    ) -> None:
        detail = reason or (
            f'audio file (format: {audio_format}, sample rate: {sample_rate}, '
            f'channels: {channels}, bits: {bits_per_sample}) must be WAV format mono 16-bit PCM'
        )
        super().__init__(f'{path}: {detail}')
        self.path = path
        self.audio_format = audio_format
        self.sample_rate = sample_rate
        self.channels = channels
        self.bits_per_sample = bits_per_sample


class EngineError(TranscriptionError):
    """Base class for failures reported by the recognition engine."""


class EngineInitError(EngineError):
    """Raised when the engine rejects a model directory."""

    def __init__(self, directory: str, reason: str = '') -> None:
        msg = f'Engine failed to load model from {directory}'
        super().__init__(f'{msg}: {reason}' if reason else msg)
        self.directory = directory


class EngineConfigError(EngineError):
    """Raised when the engine rejects a recognizer configuration."""

    def __init__(self, parameter: str, value: object, reason: str = '') -> None:
        msg = f'Invalid recognizer {parameter}={value!r}'
        super().__init__(f'{msg}: {reason}' if reason else msg)
        self.parameter = parameter
        self.value = value


class EngineRuntimeError(EngineError):
    """Raised when the engine fails while accepting audio or producing a result."""


class TranscriptionTimeoutError(TranscriptionError):
    """Raised when a transcription does not finish before its deadline."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f'Transcription timed out after {timeout}s')
        self.timeout = timeout
