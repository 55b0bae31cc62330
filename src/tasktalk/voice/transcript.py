# src/tasktalk/voice/transcript.py

"""
Filtering of speech-to-text output before it reaches the engine.

Recognisers emit hesitation sounds, single letters and punctuation when they
pick up background noise. Those, and transcripts the recogniser itself is
unsure about, are dropped here.
"""

from __future__ import annotations

import re

MIN_TRANSCRIPT_LEN = 2
DEFAULT_MIN_CONFIDENCE = 0.7

_HESITATION_RE = re.compile(r"^(?:u+h+|u+m+|a+h+|e+r+|h+m+)(?:[\s,.]+(?:u+h+|u+m+|a+h+|e+r+|h+m+))*[.!?]*$", re.IGNORECASE)
_SINGLE_LETTER_RE = re.compile(r"^[a-z]$", re.IGNORECASE)
_PUNCTUATION_RE = re.compile(r"^[\s.,!?]+$")

NOISE_PATTERNS: tuple[re.Pattern[str], ...] = (_HESITATION_RE, _SINGLE_LETTER_RE, _PUNCTUATION_RE)


def is_valid_transcript(
    text: str | None,
    confidence: float | None = None,
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    *,
    allow_short: bool = False,
) -> bool:
    """
    True if `text` looks like speech worth interpreting.

    A confidence of None or 0 means the recogniser did not report one and is
    not held against the transcript. `allow_short` lets single-character
    answers through (a digit or "y" while a question is pending).
    """
    t = (text or "").strip()
    if len(t) < (1 if allow_short else MIN_TRANSCRIPT_LEN):
        return False

    if confidence is not None and 0 < confidence < min_confidence:
        return False

    if allow_short and _SINGLE_LETTER_RE.match(t):
        return True
    return not any(p.match(t) for p in NOISE_PATTERNS)
