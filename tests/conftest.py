"""Shared test fixtures and protocol-conforming fakes."""

from __future__ import annotations

import difflib
import struct
import time
import wave
from pathlib import Path
from typing import Any

import numpy as np
import pytest

from voskflow.l1_entities.config import AppConfig
from voskflow.l2_use_cases.model_handle import ModelHandle
from voskflow.l4_frameworks_and_drivers.infra_config import build_app_config

# --- Synthetic speech ---
#
# The fake engine "hears" a word as a run of WORD_SAMPLES identical non-zero
# samples whose value selects the word from VOCAB. A run of BOUNDARY_SAMPLES
# zeros after speech is an utterance boundary.

VOCAB = ['yes', 'no', 'hello', 'world', 'experience', 'proves', 'this', 'maybe']
WORD_SAMPLES = 320
WORD_GAP_SAMPLES = 160
BOUNDARY_SAMPLES = 1600


def _word_value(word: str) -> int:
    return (VOCAB.index(word) + 1) * 1000


def speech(*utterances: list[str], trailing_silence: bool = True) -> bytes:
    """Encode utterances (lists of VOCAB words) as 16-bit mono PCM."""
    samples: list[np.ndarray] = []
    for i, words in enumerate(utterances):
        for word in words:
            samples.append(np.full(WORD_SAMPLES, _word_value(word), dtype=np.int16))
            samples.append(np.zeros(WORD_GAP_SAMPLES, dtype=np.int16))
        if trailing_silence or i < len(utterances) - 1:
            samples.append(np.zeros(BOUNDARY_SAMPLES, dtype=np.int16))
    if not samples:
        return b''
    return np.concatenate(samples).astype('<i2').tobytes()


def silence(seconds: float = 1.0, sample_rate: int = 16000) -> bytes:
    return b'\x00\x00' * int(seconds * sample_rate)


def split_bytes(data: bytes, size: int) -> list[bytes]:
    return [data[i : i + size] for i in range(0, len(data), size)]


def write_wav(path: Path, frames: bytes, *, channels: int = 1, sample_width: int = 2, rate: int = 16000) -> Path:
    with wave.open(str(path), 'wb') as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(rate)
        wf.writeframes(frames)
    return path


def write_raw_wav(
    path: Path,
    frames: bytes,
    *,
    audio_format: int,
    channels: int = 1,
    rate: int = 16000,
    bits: int = 32,
) -> Path:
    """Write a WAV header by hand, for format tags the wave module cannot produce."""
    block_align = channels * bits // 8
    fmt = struct.pack('<HHIIHH', audio_format, channels, rate, rate * block_align, block_align, bits)
    body = b'WAVE' + b'fmt ' + struct.pack('<I', len(fmt)) + fmt + b'data' + struct.pack('<I', len(frames)) + frames
    path.write_bytes(b'RIFF' + struct.pack('<I', len(body)) + body)
    return path


# --- Protocol-conforming Fakes ---


class FakeModel:
    """Fake engine model — implements EngineModel protocol."""

    def __init__(self, directory: str) -> None:
        self.directory = directory
        self.free_calls = 0

    def free(self) -> None:
        self.free_calls += 1


class FakeRecognizer:
    """Deterministic fake decoder — implements EngineRecognizer protocol."""

    _ALT_CONFIDENCES = [0.2, 0.9, 0.5, 0.7, 0.1]

    def __init__(
        self,
        sample_rate: int,
        grammar: list[str] | None = None,
        max_alternatives: int = 0,
        words: bool = False,
        accept_delay: float = 0.0,
        fail_on_accept: int | None = None,
    ) -> None:
        self.sample_rate = sample_rate
        self.grammar = grammar
        self.max_alternatives = max_alternatives
        self.words = words
        self.accept_delay = accept_delay
        self.fail_on_accept = fail_on_accept

        self.accepted: list[bytes] = []
        self.free_calls = 0
        self.final_calls = 0

        self._leftover = b''
        self._position = 0
        self._run_value = 0
        self._run_len = 0
        self._current: list[tuple[str, float, float]] = []
        self._committed: list[tuple[str, float, float]] = []

    # decoding

    def _map_word(self, word: str) -> str:
        if not self.grammar:
            return word
        vocabulary = sorted({w for phrase in self.grammar for w in phrase.split()})
        if word in vocabulary:
            return word
        return (difflib.get_close_matches(word, vocabulary, n=1, cutoff=0.0) or vocabulary)[0]

    def _end_run(self) -> None:
        if self._run_value:
            word = VOCAB[self._run_value // 1000 - 1]
            start = (self._position - self._run_len) / self.sample_rate
            self._current.append((self._map_word(word), start, self._position / self.sample_rate))

    def _feed_sample(self, value: int) -> bool:
        boundary = False
        if value != self._run_value:
            self._end_run()
            self._run_value, self._run_len = value, 0
        self._run_len += 1
        self._position += 1
        if self._run_value == 0 and self._run_len == BOUNDARY_SAMPLES and self._current:
            self._committed.extend(self._current)
            self._current = []
            boundary = True
        return boundary

    def accept_waveform(self, chunk: bytes) -> bool:
        self.accepted.append(chunk)
        if self.fail_on_accept is not None and len(self.accepted) == self.fail_on_accept:
            raise RuntimeError('decoder exploded')
        if self.accept_delay:
            time.sleep(self.accept_delay)
        data = self._leftover + chunk
        usable = len(data) - len(data) % 2
        self._leftover = data[usable:]
        boundary = False
        for value in np.frombuffer(data[:usable], dtype='<i2'):
            boundary = self._feed_sample(int(value)) or boundary
        return boundary

    # results

    def _payload(self, entries: list[tuple[str, float, float]]) -> dict[str, Any]:
        text = ' '.join(w for w, _s, _e in entries)
        timings = [{'word': w, 'start': s, 'end': e, 'conf': 1.0} for w, s, e in entries]
        if self.max_alternatives > 0:
            best = max(self._ALT_CONFIDENCES)
            alternatives = []
            for i, conf in enumerate(self._ALT_CONFIDENCES):
                alt: dict[str, Any] = {'text': text if conf == best else f'{text} {i}'.strip(), 'confidence': conf}
                if self.words:
                    alt['result'] = [{k: v for k, v in t.items() if k != 'conf'} for t in timings]
                alternatives.append(alt)
            return {'alternatives': alternatives}
        payload: dict[str, Any] = {'text': text}
        if self.words and timings:
            payload['result'] = timings
        return payload

    def result(self) -> dict[str, Any]:
        entries, self._committed = self._committed, []
        return self._payload(entries)

    def partial_result(self) -> dict[str, Any]:
        return {'partial': ' '.join(w for w, _s, _e in self._current)}

    def final_result(self) -> dict[str, Any]:
        self.final_calls += 1
        self._end_run()
        self._run_value, self._run_len = 0, 0
        entries = self._committed + self._current
        self._committed, self._current = [], []
        payload = self._payload(entries)
        payload['spk'] = [0.5, 0.25]  # engine-specific extras pass through as metadata
        return payload

    def free(self) -> None:
        self.free_calls += 1


class FakeSpeechEngine:
    """Fake engine for L2/L3 tests — implements SpeechEngine protocol."""

    def __init__(
        self,
        *,
        fail_load: bool = False,
        fail_create: bool = False,
        accept_delay: float = 0.0,
        fail_on_accept: int | None = None,
    ) -> None:
        self.fail_load = fail_load
        self.fail_create = fail_create
        self.accept_delay = accept_delay
        self.fail_on_accept = fail_on_accept
        self.load_model_calls: list[str] = []
        self.create_recognizer_calls: list[dict[str, Any]] = []
        self.recognizers: list[FakeRecognizer] = []
        self.models: list[FakeModel] = []
        self.log_levels: list[int] = []

    def load_model(self, directory: str) -> FakeModel:
        self.load_model_calls.append(directory)
        if self.fail_load:
            raise RuntimeError('Failed to create a model')
        model = FakeModel(directory)
        self.models.append(model)
        return model

    def create_recognizer(
        self,
        model: FakeModel,
        sample_rate: int,
        grammar: list[str] | None = None,
        max_alternatives: int = 0,
        words: bool = False,
    ) -> FakeRecognizer:
        self.create_recognizer_calls.append(
            {
                'model': model,
                'sample_rate': sample_rate,
                'grammar': grammar,
                'max_alternatives': max_alternatives,
                'words': words,
            }
        )
        if self.fail_create:
            raise RuntimeError('Failed to create a recognizer')
        recognizer = FakeRecognizer(
            sample_rate,
            grammar=grammar,
            max_alternatives=max_alternatives,
            words=words,
            accept_delay=self.accept_delay,
            fail_on_accept=self.fail_on_accept,
        )
        self.recognizers.append(recognizer)
        return recognizer

    def set_log_level(self, level: int) -> None:
        self.log_levels.append(level)


# --- Standard Fixtures ---


@pytest.fixture
def model_dir(tmp_path: Path) -> Path:
    d = tmp_path / 'vosk-model-small-en-us'
    d.mkdir()
    (d / 'am').mkdir()
    return d


@pytest.fixture
def fake_engine() -> FakeSpeechEngine:
    return FakeSpeechEngine()


@pytest.fixture
def loaded_model(fake_engine: FakeSpeechEngine, model_dir: Path) -> ModelHandle:
    return ModelHandle(fake_engine.load_model(str(model_dir)), str(model_dir))


@pytest.fixture
def speech_wav(tmp_path: Path) -> Path:
    return write_wav(tmp_path / 'speech.wav', speech(['hello', 'world'], ['experience', 'proves', 'this']))


@pytest.fixture
def silent_wav(tmp_path: Path) -> Path:
    return write_wav(tmp_path / 'silence.wav', silence(1.0))


@pytest.fixture
def default_config() -> AppConfig:
    return build_app_config({})


@pytest.fixture
def sample_config_yaml(tmp_path: Path) -> Path:
    content = """\
model:
  directory: "/models/vosk-model-small-en-us-0.15"
  log_level: 0
recognizer:
  sample_rate: 8000
  grammar: ["yes", "no"]
  alternatives: 3
streaming:
  chunk_size: 8192
  timeout: 30
"""
    p = tmp_path / 'config.yaml'
    p.write_text(content, encoding='utf-8')
    return p
