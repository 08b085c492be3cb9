"""L1 entity: transcription pipeline state."""

from __future__ import annotations

import enum


class PipelineState(enum.Enum):
    INIT = 'init'
    STREAMING = 'streaming'
    FINALIZING = 'finalizing'
    DONE = 'done'
    FAILED = 'failed'
