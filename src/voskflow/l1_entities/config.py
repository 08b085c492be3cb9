"""Configuration Pydantic models — pure schema, no infrastructure defaults."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from voskflow.l1_entities.audio_constants import SAMPLE_WIDTH
from voskflow.l1_entities.recognizer_config import RecognizerConfig


class ModelConfig(BaseModel):
    directory: str | None = None
    log_level: int = -1  # engine verbosity; <0 silent, 0 infos and errors


class StreamingConfig(BaseModel):
    chunk_size: int = Field(gt=0)
    timeout: float | None = Field(default=None, gt=0)

    @field_validator('chunk_size')
    @classmethod
    def whole_samples(cls, v: int) -> int:
        """A chunk must not split a 16-bit sample."""
        if v % SAMPLE_WIDTH:
            raise ValueError(f'chunk_size must be a multiple of {SAMPLE_WIDTH} bytes, got {v}')
        return v


class AppConfig(BaseModel):
    model: ModelConfig
    recognizer: RecognizerConfig
    streaming: StreamingConfig
