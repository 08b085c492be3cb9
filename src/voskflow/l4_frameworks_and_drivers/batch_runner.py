"""Batch runner — headless transcribe-from-file with latency report."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

from voskflow.l1_entities.config import AppConfig
from voskflow.l1_entities.errors import TranscriptionError
from voskflow.l1_entities.transcript import TranscriptResult, UtteranceResult
from voskflow.l4_frameworks_and_drivers.container import DependencyContainer

log = logging.getLogger('vf.cli')


def _err(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


def _print_utterance(utterance: UtteranceResult) -> None:
    _err(f'  [{utterance.index}] {utterance.text}')


def _banner(audio_path: Path, config: AppConfig) -> None:
    rc = config.recognizer
    grammar = ', '.join(rc.grammar) if rc.grammar else 'not specified. Default: NO'
    _err(f'model directory      : {config.model.directory}')
    _err(f'speech file name     : {audio_path}')
    _err(f'grammar              : {grammar}')
    _err(f'sample rate          : {rc.sample_rate}')
    _err(f'max alternatives     : {rc.alternatives}')
    _err(f'feeding              : {"concurrent" if rc.concurrent_feeding else "blocking"}')
    _err(f'Vosk debug level     : {config.model.log_level}')
    _err('')


def run_batch(
    audio_path: Path,
    config: AppConfig,
    container: DependencyContainer | None = None,
) -> TranscriptResult:
    """Load the model, transcribe *audio_path*, print the result, free the model. Blocks until done."""
    if not config.model.directory:
        _err('Error: no model directory given (use --model or set model.directory in config)')
        raise SystemExit(1)

    _banner(audio_path, config)
    container = container or DependencyContainer(config)
    controller = container.controller
    watch = controller.stopwatch

    controller.set_verbosity(config.model.log_level)

    try:
        model = controller.load_model(config.model.directory)
    except TranscriptionError as exc:
        _err(f'Error: {exc}')
        raise SystemExit(1) from exc
    _err(f'load model latency   : {watch.elapsed("load_model"):.0f}ms')
    _err('')

    try:
        watch.start('transcript')
        result = asyncio.run(
            controller.transcribe_file(
                audio_path,
                model,
                config.recognizer,
                on_utterance=_print_utterance,
                timeout=config.streaming.timeout,
            )
        )
    except TranscriptionError as exc:
        log.error('Batch transcription failed: %s', exc)
        _err(f'Error: {exc}')
        raise SystemExit(1) from exc
    finally:
        controller.free_model(model)

    print(result.model_dump_json(indent=2, exclude_none=True))
    _err('')
    _err(f'transcript latency   : {watch.elapsed("transcript"):.0f}ms')
    return result
