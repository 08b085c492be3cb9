"""Transcript result entities."""

from __future__ import annotations

import copy
from typing import Any

from pydantic import BaseModel, Field

_KNOWN_KEYS = frozenset({'text', 'alternatives', 'result', 'partial'})


class WordTiming(BaseModel):
    """Per-word timing reported by the engine."""

    word: str
    start: float
    end: float
    conf: float | None = None


class Alternative(BaseModel):
    """One N-best hypothesis."""

    text: str
    confidence: float
    words: list[WordTiming] = Field(default_factory=list)


class UtteranceResult(BaseModel):
    """A committed intermediate result, emitted at an utterance boundary."""

    index: int
    text: str
    alternatives: list[Alternative] | None = None
    words: list[WordTiming] = Field(default_factory=list)


class TranscriptResult(BaseModel):
    """Final result of one recognizer session."""

    text: str = ''
    alternatives: list[Alternative] | None = None
    words: list[WordTiming] = Field(default_factory=list)
    utterances: list[UtteranceResult] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def full_text(self) -> str:
        """Committed utterances followed by the final segment, space-joined."""
        parts = [u.text for u in self.utterances] + [self.text]
        return ' '.join(p for p in parts if p)

    @classmethod
    def from_engine(cls, raw: dict[str, Any], max_alternatives: int = 0) -> TranscriptResult:
        """Build a result that shares no structure with the engine payload *raw*."""
        text, alternatives, words = parse_hypotheses(raw, max_alternatives)
        metadata = {k: copy.deepcopy(v) for k, v in raw.items() if k not in _KNOWN_KEYS}
        return cls(text=text, alternatives=alternatives, words=words, metadata=metadata)


def parse_hypotheses(
    raw: dict[str, Any],
    max_alternatives: int = 0,
) -> tuple[str, list[Alternative] | None, list[WordTiming]]:
    """Split an engine result payload into (best text, alternatives, words).

    When the payload carries an ``alternatives`` list, the best text is taken
    from the highest-confidence entry and the list is capped at *max_alternatives*.
    """
    if max_alternatives <= 0 or 'alternatives' not in raw:
        words = [WordTiming(**w) for w in raw.get('result', [])]
        return raw.get('text', ''), None, words

    alternatives = [
        Alternative(
            text=alt.get('text', ''),
            confidence=float(alt.get('confidence', 0.0)),
            words=[WordTiming(**w) for w in alt.get('result', [])],
        )
        for alt in raw['alternatives']
    ]
    alternatives.sort(key=lambda a: a.confidence, reverse=True)
    alternatives = alternatives[:max_alternatives]
    if not alternatives:
        return '', [], []
    best = alternatives[0]
    return best.text, alternatives, list(best.words)
