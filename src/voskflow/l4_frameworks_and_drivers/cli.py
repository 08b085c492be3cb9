"""CLI entry point for voskflow."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from voskflow import __version__


def _parse_grammar(value: str | None) -> list[str] | None:
    """Split comma-separated phrases, trimming whitespace and dropping empties."""
    if value is None:
        return None
    phrases = [p.strip() for p in value.split(',')]
    return [p for p in phrases if p] or None


def _build_overrides(
    model_dir: str | None,
    grammar: str | None,
    sample_rate: int | None,
    alternatives: int | None,
    debug: int | None,
    blocking: bool,
    words: bool,
    timeout: float | None,
) -> dict:
    overrides: dict = {}
    model: dict = {}
    if model_dir is not None:
        model['directory'] = model_dir
    if debug is not None:
        model['log_level'] = debug
    recognizer: dict = {}
    phrases = _parse_grammar(grammar)
    if phrases is not None:
        recognizer['grammar'] = phrases
    if sample_rate is not None:
        recognizer['sample_rate'] = sample_rate
    if alternatives is not None:
        recognizer['alternatives'] = alternatives
    if blocking:
        recognizer['concurrent_feeding'] = False
    if words:
        recognizer['words'] = True
    if model:
        overrides['model'] = model
    if recognizer:
        overrides['recognizer'] = recognizer
    if timeout is not None:
        overrides['streaming'] = {'timeout': timeout}
    return overrides


@click.command()
@click.option('-m', '--model', 'model_dir', default=None, type=click.Path(), help='Vosk model directory.')
@click.option(
    '-a',
    '--audio',
    'audio_file',
    required=True,
    type=click.Path(dir_okay=False),
    help='Speech file to transcribe (WAV, mono, 16-bit PCM).',
)
@click.option('--grammar', default=None, help='Comma-separated words or sentences constraining recognition.')
@click.option('--samplerate', 'sample_rate', default=None, type=int, help='Sample rate, usually 16000 or 8000.')
@click.option('--alternatives', default=None, type=click.IntRange(min=0), help='Max alternatives in the result.')
@click.option('--debug', default=None, type=int, help='Vosk debug level (default -1, silent).')
@click.option('--blocking', is_flag=True, help='Feed audio on the calling thread instead of a worker thread.')
@click.option('--words', is_flag=True, help='Include per-word timing in the result.')
@click.option('--timeout', default=None, type=click.FloatRange(min=0, min_open=True), help='Abort after N seconds.')
@click.option(
    '-c',
    '--config',
    'config_path',
    default=None,
    type=click.Path(exists=True),
    help='Path to YAML config file.',
)
@click.option('--log-file', default=None, type=click.Path(dir_okay=False), help='Write debug log to this file.')
@click.option('-v', '--verbose', is_flag=True, help='Log pipeline diagnostics to stderr.')
@click.version_option(version=__version__)
def cli(
    model_dir,
    audio_file,
    grammar,
    sample_rate,
    alternatives,
    debug,
    blocking,
    words,
    timeout,
    config_path,
    log_file,
    verbose,
):
    """voskflow -- transcribe a speech file with a Vosk model.

    \b
    Examples:
      voskflow --audio=audio/2830-3980-0043.wav --model=models/vosk-model-en-us-aspire-0.2
      voskflow --audio=audio/2830-3980-0043.wav --model=models/vosk-model-small-en-us-0.15 \\
        --grammar="experience proves this, bla bla bla" --alternatives=3
    """
    from voskflow.l4_frameworks_and_drivers.container import (  # noqa: PLC0415 -- deferred: not needed for --help
        DependencyContainer,
    )
    from voskflow.l4_frameworks_and_drivers.infra_config import (  # noqa: PLC0415 -- deferred: not needed for --help
        build_app_config,
    )
    from voskflow.l4_frameworks_and_drivers.logging_setup import (  # noqa: PLC0415 -- deferred: not needed for --help
        setup_console_logging,
        setup_file_logging,
    )

    overrides = _build_overrides(model_dir, grammar, sample_rate, alternatives, debug, blocking, words, timeout)
    try:
        raw = DependencyContainer.config_loader().load_raw(config_path, overrides=overrides or None)
        config = build_app_config(raw)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)

    setup_console_logging(verbose)
    if log_file:
        setup_file_logging(Path(log_file))

    from voskflow.l4_frameworks_and_drivers.batch_runner import (  # noqa: PLC0415 -- deferred: engine not loaded for --help
        run_batch,
    )

    run_batch(audio_path=Path(audio_file), config=config)
