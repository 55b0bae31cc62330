# src/tasktalk/engine/matcher.py

"""
Similarity matcher: free-text query -> ranked candidate tasks.

Scoring tiers (case-insensitive), evaluated in order:
- exact title equality            -> 1.0, exact
- substring containment (either)  -> 0.8, partial
- token overlap (Jaccard x 0.6)   -> fuzzy

The first tier with results is returned unless full ranking is requested.
Numeric references ("2", "2nd", "number 2", "second") address a position in
the ordering presented to the user and take priority over text similarity.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from ..tasks.task_models import Task

MIN_RELEVANCE = 0.3

EXACT_SCORE = 1.0
PARTIAL_SCORE = 0.8
FUZZY_SCALE = 0.6

MIN_TOKEN_LEN = 3

ORDINAL_WORDS: dict[str, int] = {
    "first": 1,
    "second": 2,
    "third": 3,
    "fourth": 4,
    "fifth": 5,
    "sixth": 6,
    "seventh": 7,
    "eighth": 8,
    "ninth": 9,
    "tenth": 10,
}

# Dropped from queries before scoring; titles keep every word.
FILLER_WORDS: frozenset[str] = frozenset(
    {"the", "a", "an", "task", "tasks", "this", "that", "number", "my", "please", "item", "one"}
)

_NUMBER_RE = re.compile(r"(?<![\w.])(-?\d+)(?:st|nd|rd|th)?(?!\w|\.\d)", re.IGNORECASE)
_ORDINAL_RE = re.compile(r"\b(" + "|".join(ORDINAL_WORDS) + r")\b", re.IGNORECASE)
_WORD_RE = re.compile(r"[\w']+")


class MatchType(StrEnum):
    EXACT = "exact"
    PARTIAL = "partial"
    FUZZY = "fuzzy"


@dataclass(frozen=True, slots=True)
class TaskMatch:
    task: Task
    score: float
    match_type: MatchType


def find_number_reference(text: str) -> int | None:
    """
    Return the 1-based position referenced by `text`, if any.

    Digits win over ordinal words when both are present. Zero and negative
    numbers are returned as-is so callers can report them as out of range.
    """
    if not text:
        return None
    m = _NUMBER_RE.search(text)
    if m:
        try:
            return int(m.group(1))
        except ValueError:
            return None
    m = _ORDINAL_RE.search(text)
    if m:
        return ORDINAL_WORDS[m.group(1).lower()]
    return None


def normalize_query(query: str) -> str:
    """Lowercase, keep word characters, drop filler words."""
    words = [w for w in _WORD_RE.findall((query or "").lower()) if w not in FILLER_WORDS]
    return " ".join(words)


def has_reference(query: str) -> bool:
    """True if `query` names a task by position or by any non-filler word."""
    return find_number_reference(query) is not None or bool(normalize_query(query))


def _tokens(text: str) -> set[str]:
    return {w for w in text.split() if len(w) >= MIN_TOKEN_LEN}


def _squash(text: str) -> str:
    return " ".join((text or "").lower().split())


def score_title(query: str, title: str) -> tuple[float, MatchType] | None:
    """
    Score a query against a title.

    Filler words are dropped from the query only; the title is compared
    case-insensitively with punctuation ignored. Returns None when there is
    no similarity at all.
    """
    q = normalize_query(query)
    t = " ".join(_WORD_RE.findall((title or "").lower()))
    if not q or not t:
        return None

    if q == t:
        return EXACT_SCORE, MatchType.EXACT

    if q in t or t in q:
        return PARTIAL_SCORE, MatchType.PARTIAL

    q_tokens = _tokens(q)
    t_tokens = _tokens(t)
    inter = q_tokens & t_tokens
    if not inter:
        return None
    return (len(inter) / len(q_tokens | t_tokens)) * FUZZY_SCALE, MatchType.FUZZY


def match(
    query: str,
    tasks: Sequence[Task],
    *,
    numbered: Sequence[Task] | None = None,
    threshold: float = MIN_RELEVANCE,
    full_ranking: bool = False,
) -> list[TaskMatch]:
    """
    Rank `tasks` against `query`.

    `numbered` is the ordering the user was shown; numeric references index
    into it (defaults to `tasks`). An out-of-range number yields [].
    Ties keep the original ordering of `tasks`.
    """
    if not query or not query.strip():
        return []

    position = find_number_reference(query)
    if position is not None:
        ordering = list(numbered if numbered is not None else tasks)
        if 1 <= position <= len(ordering):
            return [TaskMatch(ordering[position - 1], EXACT_SCORE, MatchType.EXACT)]
        return []

    # A literal title match beats anything found after filler removal.
    raw = _squash(query)
    literal = [TaskMatch(t, EXACT_SCORE, MatchType.EXACT) for t in tasks if _squash(t.title) == raw]
    if literal and not full_ranking:
        return literal

    scored: list[TaskMatch] = []
    for task in tasks:
        if _squash(task.title) == raw:
            scored.append(TaskMatch(task, EXACT_SCORE, MatchType.EXACT))
            continue
        res = score_title(query, task.title)
        if res is None:
            continue
        score, kind = res
        if score >= threshold:
            scored.append(TaskMatch(task, score, kind))

    # sorted() is stable: equal scores keep store order.
    ranked = sorted(scored, key=lambda m: m.score, reverse=True)
    if full_ranking or not ranked:
        return ranked

    for tier in (MatchType.EXACT, MatchType.PARTIAL, MatchType.FUZZY):
        hits = [m for m in ranked if m.match_type == tier]
        if hits:
            return hits
    return []
