"""Gateway: Vosk recognition engine — implements SpeechEngine port."""

from __future__ import annotations

import json
import logging
from typing import Any

import vosk

log = logging.getLogger('vf.engine')


class VoskModel:
    """Owns a ``vosk.Model``. Native memory is freed when the last reference drops."""

    def __init__(self, model: vosk.Model) -> None:
        self._model: vosk.Model | None = model

    @property
    def native(self) -> vosk.Model:
        if self._model is None:
            raise RuntimeError('Vosk model has been freed')
        return self._model

    def free(self) -> None:
        self._model = None


class VoskRecognizer:
    """``vosk.KaldiRecognizer`` adapter. Decodes the binding's JSON strings into dicts."""

    def __init__(self, recognizer: vosk.KaldiRecognizer) -> None:
        self._recognizer: vosk.KaldiRecognizer | None = recognizer

    @property
    def native(self) -> vosk.KaldiRecognizer:
        if self._recognizer is None:
            raise RuntimeError('Vosk recognizer has been freed')
        return self._recognizer

    def accept_waveform(self, chunk: bytes) -> bool:
        return bool(self.native.AcceptWaveform(chunk))

    def result(self) -> dict[str, Any]:
        return json.loads(self.native.Result())

    def partial_result(self) -> dict[str, Any]:
        return json.loads(self.native.PartialResult())

    def final_result(self) -> dict[str, Any]:
        return json.loads(self.native.FinalResult())

    def free(self) -> None:
        self._recognizer = None


class VoskEngine:
    """Vosk/Kaldi adapter. Grammar phrases are passed to the decoder as a JSON list."""

    def load_model(self, directory: str) -> VoskModel:
        return VoskModel(vosk.Model(directory))

    def create_recognizer(
        self,
        model: VoskModel,
        sample_rate: int,
        grammar: list[str] | None = None,
        max_alternatives: int = 0,
        words: bool = False,
    ) -> VoskRecognizer:
        if grammar:
            recognizer = vosk.KaldiRecognizer(model.native, sample_rate, json.dumps(grammar))
        else:
            recognizer = vosk.KaldiRecognizer(model.native, sample_rate)
        if max_alternatives:
            recognizer.SetMaxAlternatives(max_alternatives)
        if words:
            recognizer.SetWords(True)
        return VoskRecognizer(recognizer)

    def set_log_level(self, level: int) -> None:
        log.debug('Vosk log level set to %d', level)
        vosk.SetLogLevel(level)
