"""Per-call recognizer configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field

from voskflow.l1_entities.audio_constants import SAMPLE_RATE


class RecognizerConfig(BaseModel):
    """Options recognized on every transcription call.

    Frozen: sample rate and grammar are fixed for the life of a session.
    """

    sample_rate: int = Field(default=SAMPLE_RATE, gt=0)
    grammar: list[str] | None = Field(default=None, description='Phrases constraining the decoder output')
    alternatives: int = Field(default=0, ge=0, description='Max N-best hypotheses; 0 = single best only')
    concurrent_feeding: bool = True
    words: bool = Field(default=False, description='Request per-word timing metadata')

    model_config = {'frozen': True, 'extra': 'forbid'}
