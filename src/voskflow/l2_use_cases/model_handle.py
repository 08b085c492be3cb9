"""Use case: model lifecycle — load once, share read-only, free exactly once."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from voskflow.l1_entities.errors import EngineInitError, ResourceNotFoundError
from voskflow.l2_use_cases.ports.speech_engine import EngineModel, SpeechEngine
from voskflow.l2_use_cases.utils.stopwatch import Stopwatch

log = logging.getLogger('vf.model')


class ModelHandle:
    """Owns a loaded engine model shared by many recognizer sessions.

    Sessions register through ``acquire()``/``release_session()`` so the
    handle can refuse to free itself while a session still decodes against it.
    """

    def __init__(self, engine_model: EngineModel, directory: str) -> None:
        self._engine_model: EngineModel | None = engine_model
        self.directory = directory
        self._active_sessions = 0

    @property
    def is_released(self) -> bool:
        return self._engine_model is None

    @property
    def active_sessions(self) -> int:
        return self._active_sessions

    def acquire(self) -> EngineModel:
        """Register a new session and hand it the engine model."""
        if self._engine_model is None:
            raise RuntimeError(f'Model {self.directory} has already been freed')
        self._active_sessions += 1
        return self._engine_model

    def release_session(self) -> None:
        if self._active_sessions <= 0:
            raise RuntimeError(f'Model {self.directory} has no active session to release')
        self._active_sessions -= 1

    def free(self) -> None:
        """Release the native model. A second call is a programming error."""
        if self._engine_model is None:
            raise RuntimeError(f'Model {self.directory} has already been freed')
        if self._active_sessions:
            raise RuntimeError(f'Model {self.directory} still has {self._active_sessions} active session(s)')
        engine_model, self._engine_model = self._engine_model, None
        engine_model.free()
        log.info('Model freed: %s', self.directory)

    def __repr__(self) -> str:
        state = 'released' if self.is_released else f'sessions={self._active_sessions}'
        return f'ModelHandle({self.directory!r}, {state})'


def load_model(
    engine: SpeechEngine,
    directory: str | Path,
    stopwatch: Stopwatch | None = None,
) -> ModelHandle:
    """Load the model in *directory* through *engine*.

    Raises:
        ResourceNotFoundError: directory missing, not a directory, or unreadable.
            Checked before the engine allocates anything.
        EngineInitError: the engine rejected the directory contents.
    """
    path = Path(directory)
    if not path.exists():
        raise ResourceNotFoundError(str(path), 'model directory not found')
    if not path.is_dir():
        raise ResourceNotFoundError(str(path), 'model path is not a directory')
    if not os.access(path, os.R_OK | os.X_OK):
        raise ResourceNotFoundError(str(path), 'model directory is not readable')

    watch = stopwatch or Stopwatch()
    watch.start('load_model')
    try:
        engine_model = engine.load_model(str(path))
    except Exception as exc:
        log.error('Failed to load model %s: %s', path, exc, exc_info=True)
        raise EngineInitError(str(path), str(exc)) from exc

    log.info('Model loaded: %s (%.0f ms)', path, watch.elapsed('load_model'))
    return ModelHandle(engine_model, str(path))


def free_model(handle: ModelHandle) -> None:
    handle.free()
