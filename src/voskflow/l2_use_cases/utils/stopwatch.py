"""Labelled elapsed-time measurement for diagnostics."""

from __future__ import annotations

import time


class Stopwatch:
    """Independent named timers. Starting a running label resets it."""

    def __init__(self) -> None:
        self._starts: dict[str, float] = {}

    def start(self, label: str) -> None:
        self._starts[label] = time.monotonic()

    def elapsed(self, label: str) -> float:
        """Milliseconds since *label* was last started. Raises KeyError if never started."""
        try:
            started = self._starts[label]
        except KeyError:
            raise KeyError(f'Timer {label!r} was never started') from None
        return (time.monotonic() - started) * 1000.0


_default = Stopwatch()


def start_timer(label: str) -> None:
    _default.start(label)


def elapsed(label: str) -> float:
    return _default.elapsed(label)
