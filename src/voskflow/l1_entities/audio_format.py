"""Audio container format entity."""

from __future__ import annotations

from pydantic import BaseModel

from voskflow.l1_entities.audio_constants import CHANNELS, SAMPLE_WIDTH, WAVE_FORMAT_PCM


class AudioFormat(BaseModel):
    """Format fields read from a WAV ``fmt `` chunk."""

    audio_format: int
    sample_rate: int
    channels: int
    bits_per_sample: int

    model_config = {'frozen': True}

    @property
    def is_mono_pcm16(self) -> bool:
        return (
            self.audio_format == WAVE_FORMAT_PCM
            and self.channels == CHANNELS
            and self.bits_per_sample == SAMPLE_WIDTH * 8
        )
