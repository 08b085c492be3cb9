"""Port: speech recognition engine."""

from __future__ import annotations

from typing import Any, Protocol


class EngineModel(Protocol):
    """Loaded acoustic/language model owned by the engine."""

    def free(self) -> None:
        """Release the native model. Must be called exactly once."""
        ...


class EngineRecognizer(Protocol):
    """Stateful decoder bound to one model and one sample rate."""

    def accept_waveform(self, chunk: bytes) -> bool:
        """Feed PCM bytes. Returns True when an utterance boundary was reached."""
        ...

    def result(self) -> dict[str, Any]:
        """Result of the utterance just committed at a boundary."""
        ...

    def partial_result(self) -> dict[str, Any]:
        """Hypothesis for the utterance still being decoded."""
        ...

    def final_result(self) -> dict[str, Any]:
        """Flush pending audio and return the last segment's result."""
        ...

    def free(self) -> None:
        """Release the native recognizer. Must be called exactly once."""
        ...


class SpeechEngine(Protocol):
    """Abstract recognition engine. Zero framework types leak through."""

    def load_model(self, directory: str) -> EngineModel:
        """Load a model directory. Raises on rejected contents."""
        ...

    def create_recognizer(
        self,
        model: EngineModel,
        sample_rate: int,
        grammar: list[str] | None = None,
        max_alternatives: int = 0,
        words: bool = False,
    ) -> EngineRecognizer:
        """Create a recognizer. Raises on rejected sample rate or grammar."""
        ...

    def set_log_level(self, level: int) -> None:
        """Set process-wide engine verbosity."""
        ...
