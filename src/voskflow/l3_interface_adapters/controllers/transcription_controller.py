"""TranscriptionController — the caller-facing surface of the pipeline."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from voskflow.l1_entities.audio_constants import DEFAULT_CHUNK_SIZE
from voskflow.l1_entities.errors import EngineConfigError
from voskflow.l1_entities.recognizer_config import RecognizerConfig
from voskflow.l1_entities.transcript import TranscriptResult
from voskflow.l2_use_cases.model_handle import ModelHandle, free_model, load_model
from voskflow.l2_use_cases.ports.speech_engine import SpeechEngine
from voskflow.l2_use_cases.transcribe_use_case import TranscribeUseCase, UtteranceCallback
from voskflow.l2_use_cases.utils.stopwatch import Stopwatch
from voskflow.l3_interface_adapters.gateways.buffer_audio_source import AudioBuffer, wrap_audio_buffer
from voskflow.l3_interface_adapters.gateways.wav_audio_source import open_audio_file

log = logging.getLogger('vf.controller')


def _as_config(config: RecognizerConfig | dict[str, Any] | None) -> RecognizerConfig:
    if config is None:
        return RecognizerConfig()
    if isinstance(config, RecognizerConfig):
        return config
    try:
        return RecognizerConfig.model_validate(config)
    except ValidationError as exc:
        error = exc.errors()[0]
        parameter = str(error['loc'][0]) if error['loc'] else 'config'
        raise EngineConfigError(parameter, config.get(parameter), error['msg']) from exc


class TranscriptionController:
    """Bridges callers (CLI, services) to the model and transcription use cases.

    A controller holds no per-request state, so one instance can serve many
    concurrent ``transcribe_*`` calls against the same loaded model.
    """

    def __init__(
        self,
        engine: SpeechEngine,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        stopwatch: Stopwatch | None = None,
    ) -> None:
        self._engine = engine
        self._chunk_size = chunk_size
        self.stopwatch = stopwatch or Stopwatch()

    def set_verbosity(self, level: int) -> None:
        """Set engine log verbosity. Higher is louder; below 0 is silent."""
        self._engine.set_log_level(level)

    def load_model(self, directory: str | Path) -> ModelHandle:
        return load_model(self._engine, directory, self.stopwatch)

    def free_model(self, model: ModelHandle) -> None:
        free_model(model)

    async def transcribe_file(
        self,
        path: str | Path,
        model: ModelHandle,
        config: RecognizerConfig | dict[str, Any] | None = None,
        *,
        on_utterance: UtteranceCallback | None = None,
        timeout: float | None = None,
    ) -> TranscriptResult:
        """Transcribe a mono 16-bit PCM WAV file."""
        cfg = _as_config(config)
        log.info('Transcribing file %s (rate=%d, concurrent=%s)', path, cfg.sample_rate, cfg.concurrent_feeding)
        use_case = TranscribeUseCase(self._engine, model)
        return await use_case.execute(
            lambda: open_audio_file(path, self._chunk_size),
            cfg,
            on_utterance=on_utterance,
            timeout=timeout,
        )

    async def transcribe_buffer(
        self,
        buffer: AudioBuffer,
        model: ModelHandle,
        config: RecognizerConfig | dict[str, Any] | None = None,
        *,
        on_utterance: UtteranceCallback | None = None,
        timeout: float | None = None,
    ) -> TranscriptResult:
        """Transcribe raw mono 16-bit PCM held in memory. No header validation."""
        cfg = _as_config(config)
        use_case = TranscribeUseCase(self._engine, model)
        return await use_case.execute(
            lambda: (None, wrap_audio_buffer(buffer)),
            cfg,
            on_utterance=on_utterance,
            timeout=timeout,
        )
