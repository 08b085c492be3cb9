"""Use case: drive one transcription — open source, stream chunks, finalize, release."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

from voskflow.l1_entities.audio_format import AudioFormat
from voskflow.l1_entities.errors import TranscriptionTimeoutError
from voskflow.l1_entities.pipeline_state import PipelineState
from voskflow.l1_entities.recognizer_config import RecognizerConfig
from voskflow.l1_entities.transcript import TranscriptResult, UtteranceResult
from voskflow.l2_use_cases.model_handle import ModelHandle
from voskflow.l2_use_cases.ports.audio_source import ChunkStream
from voskflow.l2_use_cases.ports.speech_engine import SpeechEngine
from voskflow.l2_use_cases.recognizer_session import RecognizerSession, create_recognizer
from voskflow.l2_use_cases.utils.stopwatch import Stopwatch

log = logging.getLogger('vf.driver')

SourceOpener = Callable[[], tuple[AudioFormat | None, ChunkStream]]
UtteranceCallback = Callable[[UtteranceResult], Awaitable[None] | None]


class TranscribeUseCase:
    """State machine INIT -> STREAMING -> FINALIZING -> DONE, FAILED from any state.

    One instance drives one transcription at a time; the model it holds may be
    shared with other instances running concurrently.
    """

    def __init__(
        self,
        engine: SpeechEngine,
        model: ModelHandle,
        stopwatch: Stopwatch | None = None,
    ) -> None:
        self._engine = engine
        self._model = model
        self._stopwatch = stopwatch or Stopwatch()
        self.state = PipelineState.INIT
        self.elapsed_ms: float | None = None

    async def execute(
        self,
        open_source: SourceOpener,
        config: RecognizerConfig,
        *,
        on_utterance: UtteranceCallback | None = None,
        timeout: float | None = None,
    ) -> TranscriptResult:
        """Run the pipeline. *open_source* is called during INIT to validate and open audio.

        Raises whatever classified error aborted the run; the session, if one
        was created, is always released first.
        """
        self.state = PipelineState.INIT
        self.elapsed_ms = None
        self._stopwatch.start('transcribe')
        try:
            if timeout is None:
                return await self._run(open_source, config, on_utterance, timeout=None)
            try:
                return await asyncio.wait_for(
                    self._run(open_source, config, on_utterance, timeout=timeout),
                    timeout,
                )
            except asyncio.TimeoutError:
                self.state = PipelineState.FAILED
                log.error('Transcription timed out after %ss', timeout)
                raise TranscriptionTimeoutError(timeout) from None
        finally:
            self.elapsed_ms = self._stopwatch.elapsed('transcribe')
            log.info('Transcription %s in %.0f ms', self.state.value, self.elapsed_ms)

    async def _run(
        self,
        open_source: SourceOpener,
        config: RecognizerConfig,
        on_utterance: UtteranceCallback | None,
        timeout: float | None,
    ) -> TranscriptResult:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout is not None else None
        stream: ChunkStream | None = None
        session: RecognizerSession | None = None
        read: asyncio.Future[bytes | None] | None = None
        try:
            # INIT
            if config.concurrent_feeding:
                audio_format, stream = await asyncio.to_thread(open_source)
            else:
                audio_format, stream = open_source()
            if audio_format is not None and audio_format.sample_rate != config.sample_rate:
                log.warning(
                    'Audio sample rate %d differs from recognizer sample rate %d',
                    audio_format.sample_rate,
                    config.sample_rate,
                )
            session = create_recognizer(self._engine, self._model, config)

            # STREAMING
            self.state = PipelineState.STREAMING
            utterances: list[UtteranceResult] = []
            chunks = iter(stream)
            while True:
                if config.concurrent_feeding:
                    # file reads happen off the loop thread, like the accepts
                    read = asyncio.ensure_future(asyncio.to_thread(next, chunks, None))
                    chunk = await asyncio.shield(read)
                else:
                    chunk = next(chunks, None)
                if chunk is None:
                    break
                if not chunk:
                    continue
                if config.concurrent_feeding:
                    boundary = await session.accept_async(chunk)
                else:
                    boundary = session.accept(chunk)
                    if deadline is not None and loop.time() > deadline:
                        raise TranscriptionTimeoutError(timeout)
                if boundary:
                    utterance = session.result()
                    utterances.append(utterance)
                    log.debug('Utterance %d: %s', utterance.index, utterance.text)
                    if on_utterance is not None:
                        ret = on_utterance(utterance)
                        if inspect.isawaitable(ret):
                            await ret

            # FINALIZING
            self.state = PipelineState.FINALIZING
            result = session.final_result()
            result.utterances = utterances
        except asyncio.CancelledError:
            self.state = PipelineState.FAILED
            raise
        except Exception as exc:
            self.state = PipelineState.FAILED
            log.error('Transcription failed: %s', exc, exc_info=True)
            raise
        finally:
            try:
                if stream is not None:
                    await _close_stream(stream, read)
            finally:
                if session is not None and not session.is_released:
                    await session.aclose()

        # DONE
        self.state = PipelineState.DONE
        return result


async def _close_stream(stream: ChunkStream, read: asyncio.Future[bytes | None] | None) -> None:
    """Close *stream* once no worker thread is reading from it."""
    if read is not None and not read.done():
        try:
            await asyncio.wait({read})
        except asyncio.CancelledError:
            read.add_done_callback(lambda _read: stream.close())
            raise
        if not read.cancelled() and read.exception() is not None:
            log.debug('In-flight read ended with: %s', read.exception())
    stream.close()
