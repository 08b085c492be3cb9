"""Use case: recognizer session — one stateful decoder per transcription request."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from voskflow.l1_entities.errors import EngineConfigError, EngineRuntimeError
from voskflow.l1_entities.recognizer_config import RecognizerConfig
from voskflow.l1_entities.transcript import TranscriptResult, UtteranceResult, parse_hypotheses
from voskflow.l2_use_cases.model_handle import ModelHandle
from voskflow.l2_use_cases.ports.speech_engine import EngineRecognizer, SpeechEngine

log = logging.getLogger('vf.session')


class RecognizerSession:
    """Wraps an engine recognizer bound to one model, sample rate and grammar.

    Audio must be fed strictly in order, one accept at a time. The session
    produces any number of committed utterances and exactly one final result,
    then is released. It is never reused.
    """

    def __init__(self, recognizer: EngineRecognizer, model: ModelHandle, config: RecognizerConfig) -> None:
        self._recognizer: EngineRecognizer | None = recognizer
        self._model = model
        self.config = config
        self._utterance_count = 0
        self._finalized = False
        self._in_flight: asyncio.Future[bool] | None = None

    @property
    def is_released(self) -> bool:
        return self._recognizer is None

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def _live_recognizer(self) -> EngineRecognizer:
        if self._recognizer is None:
            raise RuntimeError('Recognizer session has been released')
        if self._finalized:
            raise RuntimeError('Recognizer session already produced its final result')
        if self._in_flight is not None and not self._in_flight.done():
            raise RuntimeError('An accept call is still in flight for this session')
        return self._recognizer

    def _accept(self, recognizer: EngineRecognizer, chunk: bytes) -> bool:
        try:
            return bool(recognizer.accept_waveform(chunk))
        except Exception as exc:
            raise EngineRuntimeError(f'accept_waveform failed on {len(chunk)}-byte chunk: {exc}') from exc

    def accept(self, chunk: bytes) -> bool:
        """Feed *chunk* on the calling thread. Returns True at an utterance boundary."""
        return self._accept(self._live_recognizer(), chunk)

    async def accept_async(self, chunk: bytes) -> bool:
        """Feed *chunk* on a worker thread, suspending the caller until it completes.

        The engine call is shielded from cancellation: if the awaiting task is
        cancelled, the call keeps running and ``aclose()`` waits for it before
        freeing the recognizer.
        """
        recognizer = self._live_recognizer()
        task = asyncio.ensure_future(asyncio.to_thread(self._accept, recognizer, chunk))
        self._in_flight = task
        result = await asyncio.shield(task)
        self._in_flight = None
        return result

    def _call(self, name: str) -> dict[str, Any]:
        recognizer = self._live_recognizer()
        try:
            return getattr(recognizer, name)()
        except Exception as exc:
            raise EngineRuntimeError(f'{name} failed: {exc}') from exc

    def partial_result(self) -> str:
        """Hypothesis text for the utterance currently being decoded."""
        return self._call('partial_result').get('partial', '')

    def result(self) -> UtteranceResult:
        """Commit the utterance that ended at the last reported boundary."""
        text, alternatives, words = parse_hypotheses(self._call('result'), self.config.alternatives)
        utterance = UtteranceResult(index=self._utterance_count, text=text, alternatives=alternatives, words=words)
        self._utterance_count += 1
        return utterance

    def final_result(self) -> TranscriptResult:
        """Flush pending audio into the last segment. Callable once."""
        raw = self._call('final_result')
        self._finalized = True
        return TranscriptResult.from_engine(raw, self.config.alternatives)

    def release(self) -> None:
        """Free the engine recognizer. A second call is a programming error."""
        if self._recognizer is None:
            raise RuntimeError('Recognizer session has already been released')
        if self._in_flight is not None and not self._in_flight.done():
            raise RuntimeError('Cannot release while an accept call is in flight; use aclose()')
        recognizer, self._recognizer = self._recognizer, None
        try:
            recognizer.free()
        finally:
            self._model.release_session()
        log.debug('Recognizer released (%d utterance(s))', self._utterance_count)

    async def aclose(self) -> None:
        """Wait for any in-flight accept, then release.

        If the wait itself is cancelled, the release is handed to the
        in-flight call's completion so the recognizer is still freed.
        """
        pending, self._in_flight = self._in_flight, None
        if pending is not None:
            try:
                await asyncio.wait({pending})
            except asyncio.CancelledError:
                pending.add_done_callback(self._release_after)
                raise
            if not pending.cancelled() and pending.exception() is not None:
                log.debug('In-flight accept ended with: %s', pending.exception())
        self.release()

    def _release_after(self, pending: asyncio.Future[bool]) -> None:
        if not pending.cancelled() and pending.exception() is not None:
            log.debug('In-flight accept ended with: %s', pending.exception())
        if not self.is_released:
            self.release()
            log.warning('Recognizer released after teardown was cancelled')

    def __enter__(self) -> RecognizerSession:
        return self

    def __exit__(self, *exc_info) -> None:
        if not self.is_released:
            self.release()

    async def __aenter__(self) -> RecognizerSession:
        return self

    async def __aexit__(self, *exc_info) -> None:
        if not self.is_released:
            await self.aclose()


def create_recognizer(engine: SpeechEngine, model: ModelHandle, config: RecognizerConfig) -> RecognizerSession:
    """Create a session on *model* configured once from *config*.

    Raises:
        EngineConfigError: empty grammar entries, or the engine rejected the
            sample rate or grammar.
        RuntimeError: *model* has already been freed.
    """
    if config.grammar is not None:
        if not config.grammar:
            raise EngineConfigError('grammar', config.grammar, 'grammar must contain at least one phrase')
        for phrase in config.grammar:
            if not phrase.strip():
                raise EngineConfigError('grammar', config.grammar, 'grammar phrases must be non-empty')

    engine_model = model.acquire()
    try:
        recognizer = engine.create_recognizer(
            engine_model,
            config.sample_rate,
            grammar=config.grammar,
            max_alternatives=config.alternatives,
            words=config.words,
        )
    except Exception as exc:
        model.release_session()
        parameter, value = ('grammar', config.grammar) if config.grammar else ('sample_rate', config.sample_rate)
        log.error('Engine rejected recognizer config: %s', exc, exc_info=True)
        raise EngineConfigError(parameter, value, str(exc)) from exc

    log.debug(
        'Recognizer created: rate=%d grammar=%s alternatives=%d',
        config.sample_rate,
        len(config.grammar) if config.grammar else 'none',
        config.alternatives,
    )
    return RecognizerSession(recognizer, model, config)
