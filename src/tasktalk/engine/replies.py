# src/tasktalk/engine/replies.py

"""
Yes/no classification of answers to a confirmation prompt.

The lexeme tables below are the single source of truth. A response is
compared as a whole against them first; only when that fails are the
patterns tried, so "no, don't delete it" is never read as a yes because it
contains "delete".
"""

from __future__ import annotations

import re
from enum import StrEnum


class Reply(StrEnum):
    YES = "yes"
    NO = "no"
    UNCLEAR = "unclear"


# "right" and "delete" are not answers on their own.
AFFIRMATIVE: frozenset[str] = frozenset(
    {
        "yes",
        "y",
        "yeah",
        "yep",
        "yup",
        "sure",
        "ok",
        "okay",
        "confirm",
        "confirmed",
        "do it",
        "go ahead",
        "proceed",
        "yes please",
        "absolutely",
        "of course",
    }
)

NEGATIVE: frozenset[str] = frozenset(
    {
        "no",
        "n",
        "nope",
        "nah",
        "cancel",
        "stop",
        "abort",
        "nevermind",
        "never mind",
        "don't",
        "dont",
        "wait",
        "back",
        "no thanks",
    }
)

AFFIRMATIVE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^(?:yes|yeah|yep|yup|sure|ok|okay)\b"),
    re.compile(r"\b(?:go ahead|do it|confirm(?:ed)?|please do)\b"),
)

NEGATIVE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^(?:no|nope|nah)\b"),
    re.compile(r"\b(?:don'?t|do not|never ?mind|cancel|stop|abort|keep it)\b"),
)

_EDGE_PUNCT_RE = re.compile(r"^[\s.!?,;:\"']+|[\s.!?,;:\"']+$")


def normalize_reply(text: str) -> str:
    out = (text or "").lower().replace("’", "'")
    out = _EDGE_PUNCT_RE.sub("", out)
    return " ".join(out.split())


def classify_reply(text: str) -> Reply:
    """Return YES, NO or UNCLEAR for an answer to a yes/no prompt."""
    reply = normalize_reply(text)
    if not reply:
        return Reply.UNCLEAR

    if reply in AFFIRMATIVE:
        return Reply.YES
    if reply in NEGATIVE:
        return Reply.NO

    yes = any(p.search(reply) for p in AFFIRMATIVE_PATTERNS)
    no = any(p.search(reply) for p in NEGATIVE_PATTERNS)
    if yes and not no:
        return Reply.YES
    if no and not yes:
        return Reply.NO
    return Reply.UNCLEAR
