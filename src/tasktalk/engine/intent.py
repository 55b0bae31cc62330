# src/tasktalk/engine/intent.py

"""
Intent parsing: utterance -> ParsedIntent.

Classification is weighted keyword scoring, not a grammar:
- every action has primary keywords, secondary keywords and fixed phrases,
- each hit adds (action weight x factor) to that action's score,
- the best score wins; a tie at the top (or no hit at all) is UNKNOWN.

After classification the action phrase is stripped with ordered patterns
(first match wins), politeness words are trimmed, and a quoted substring,
when present, replaces the extracted content verbatim.

Any parser with the same `parse()` signature (see core.ports.IntentParser)
can replace KeywordIntentParser in front of the dialogue engine.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum

from ..tasks.task_models import TaskPriority

logger = logging.getLogger(__name__)


class Action(StrEnum):
    ADD = "add"
    COMPLETE = "complete"
    DELETE = "delete"
    MODIFY = "modify"
    LIST = "list"
    UNKNOWN = "unknown"


# Actions that must be resolved against an existing task.
TARGETED_ACTIONS: frozenset[Action] = frozenset({Action.COMPLETE, Action.DELETE, Action.MODIFY})


@dataclass(frozen=True, slots=True)
class TaskMetadata:
    """Best-effort annotations inferred from an add command."""

    priority: TaskPriority = TaskPriority.MEDIUM
    due_at: float | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ParsedIntent:
    action: Action
    content: str
    confidence: float
    keywords: frozenset[str] = frozenset()
    # Text naming the task to act on. For MODIFY `content` holds the new text.
    target: str = ""
    metadata: TaskMetadata | None = None


@dataclass(frozen=True, slots=True)
class KeywordSet:
    primary: tuple[str, ...]
    secondary: tuple[str, ...]
    phrases: tuple[str, ...]
    weight: float


PRIMARY_FACTOR = 0.6
SECONDARY_FACTOR = 0.3
PHRASE_FACTOR = 0.8
ALTERNATIVES_BOOST = 0.2

ACTION_KEYWORDS: dict[Action, KeywordSet] = {
    Action.ADD: KeywordSet(
        primary=("add", "create", "new", "make"),
        secondary=("remind", "note", "task"),
        phrases=("remind me to", "i need to", "don't forget to"),
        weight=1.0,
    ),
    Action.COMPLETE: KeywordSet(
        primary=("mark", "complete", "finish", "done"),
        secondary=("check", "tick", "finished"),
        phrases=("mark as done", "is done", "completed"),
        weight=0.9,
    ),
    Action.DELETE: KeywordSet(
        primary=("delete", "remove", "cancel"),
        secondary=("clear", "erase", "drop"),
        phrases=("get rid of", "take away"),
        weight=0.8,
    ),
    Action.MODIFY: KeywordSet(
        primary=("edit", "change", "update", "modify"),
        secondary=("alter", "revise", "fix", "rename"),
        phrases=("change to", "update to"),
        weight=0.7,
    ),
    Action.LIST: KeywordSet(
        primary=("list", "show", "display"),
        secondary=("view", "see"),
        phrases=("what tasks", "show me", "what's on"),
        weight=0.6,
    ),
}

_I = re.IGNORECASE

_LEADING_FILLER_RE = re.compile(
    r"^(?:(?:hey|hi)\s+\w+\s*[,!]\s*)?"
    r"(?:(?:ok|okay|so|um|uh)\s*,?\s+)?"
    r"(?:(?:please|kindly|can\s+you|could\s+you|would\s+you|will\s+you)\s+)*",
    _I,
)
_TRAILING_POLITE_RE = re.compile(r"[\s,]*\b(?:please|thanks|thank\s+you)\s*[.!?]*$", _I)
_TRAILING_PUNCT_RE = re.compile(r"[\s.!?,;:]+$")

_QUOTED_RE = re.compile(
    r"\"([^\"]+)\""
    r"|“([^”]+)”"
    r"|(?<!\w)'([^']+)'(?!\w)"
    r"|‘([^’]+)’"
)

_LIST_SUFFIX = r"(?:\s+(?:to|on|from|off)\s+(?:the\s+|my\s+)?(?:list|tasks|task\s+list|to-?do\s+list))?"
_NO_TARGET = r"(?:\s+(?:it|this|that|the\s+task|task|this\s+task|that\s+task))?"
_DONE_WORDS = r"(?:done|complete|completed|finished|off)"

EXTRACTION_PATTERNS: dict[Action, tuple[re.Pattern[str], ...]] = {
    Action.ADD: (
        re.compile(
            r"^(?:add|create|make)\s+(?:a\s+|an\s+|the\s+)?(?:new\s+)?(?:task|todo|to-do|item|reminder|note)\b"
            r"\s*(?:called|named|titled)?\s*:?\s*(?:to\s+|for\s+|about\s+)?(?P<content>.*?)" + _LIST_SUFFIX + r"$",
            _I,
        ),
        re.compile(r"^(?:remind\s+me\s+to|i\s+need\s+to|don['’]?t\s+forget\s+to|i\s+have\s+to)\s+(?P<content>.+)$", _I),
        re.compile(r"^(?:new\s+)?(?:task|todo|reminder|note)\s*:\s*(?P<content>.+)$", _I),
        re.compile(r"^(?:add|create|make|new)\s+(?P<content>.+?)" + _LIST_SUFFIX + r"$", _I),
    ),
    Action.COMPLETE: (
        re.compile(r"^(?:mark|complete|finish|check|tick)" + _NO_TARGET + r"(?:\s+(?:as|off|done|complete|completed|finished))*$", _I),
        re.compile(
            r"^(?:mark|check|tick|set)\s+(?:off\s+)?(?:the\s+)?(?:task\s+)?(?P<content>.+?)\s+(?:as\s+)?" + _DONE_WORDS + r"$",
            _I,
        ),
        re.compile(
            r"^(?:mark|complete|finish|check\s+off|tick\s+off|cross\s+off)\s+(?:the\s+)?(?:task\s+)?(?P<content>.+)$",
            _I,
        ),
        re.compile(r"^(?:the\s+)?(?:task\s+)?(?P<content>.+?)\s+is\s+(?:done|complete|completed|finished)$", _I),
        re.compile(
            r"^(?:i(?:['’]m|\s+am|\s+have|['’]ve)?\s+)?(?:done|finished|completed)\s+(?:with\s+)?"
            r"(?:the\s+)?(?:task\s+)?(?P<content>.+)$",
            _I,
        ),
    ),
    Action.DELETE: (
        re.compile(r"^(?:delete|remove|cancel|erase|drop|clear)" + _NO_TARGET + r"$", _I),
        re.compile(
            r"^(?:delete|remove|cancel|erase|drop|clear)\s+(?:the\s+)?(?:task\s+)?(?P<content>.+?)" + _LIST_SUFFIX + r"$",
            _I,
        ),
        re.compile(r"^(?:get\s+rid\s+of|take\s+away|throw\s+away)\s+(?:the\s+)?(?:task\s+)?(?P<content>.+)$", _I),
    ),
    Action.MODIFY: (
        re.compile(
            r"^(?:change|update|edit|modify|rename|alter|revise)\s+(?:the\s+)?(?:task\s+)?"
            r"[\"“'‘](?P<target>[^\"”'’]+)[\"”'’]\s+(?:to|into|as|with)\s+(?P<content>.+)$",
            _I,
        ),
        re.compile(
            r"^(?:change|update|edit|modify|rename|alter|revise)\s+(?:the\s+)?(?:task\s+)?"
            r"(?P<target>.+?)\s+(?:to|into|as|with)\s+(?P<content>.+)$",
            _I,
        ),
        re.compile(r"^(?:change|update|edit|modify|rename|alter|revise)\s+(?:the\s+)?(?:task\s+)?(?P<target>.+)$", _I),
    ),
    Action.LIST: (),
}

PRIORITY_PATTERNS: tuple[tuple[TaskPriority, re.Pattern[str]], ...] = (
    (TaskPriority.URGENT, re.compile(r"\b(?:urgent|urgently|asap|immediately|critical)\b", _I)),
    (TaskPriority.HIGH, re.compile(r"\b(?:important|high|priority)\b", _I)),
    (TaskPriority.LOW, re.compile(r"\b(?:low|later|someday)\b", _I)),
)

TAG_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("call", re.compile(r"\b(?:call|phone|contact)\b", _I)),
    ("shopping", re.compile(r"\b(?:buy|purchase|shopping)\b", _I)),
    ("meeting", re.compile(r"\b(?:meeting|meet)\b", _I)),
    ("email", re.compile(r"\b(?:email|send|reply)\b", _I)),
    ("document", re.compile(r"\b(?:report|document|write)\b", _I)),
)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_DATE_RE = re.compile(r"\b(today|tonight|tomorrow|" + "|".join(WEEKDAYS) + r")\b", _I)
TONIGHT_HOUR = 20


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _has_word(text: str, word: str) -> bool:
    return re.search(r"(?<![\w'])" + re.escape(word) + r"(?![\w'])", text) is not None


def strip_politeness(text: str) -> str:
    out = text.strip()
    while True:
        stripped = _TRAILING_POLITE_RE.sub("", out)
        stripped = _TRAILING_PUNCT_RE.sub("", stripped).strip()
        if stripped == out:
            return out
        out = stripped


def find_quoted(text: str) -> list[str]:
    """All quoted substrings in order of appearance (quotes removed)."""
    out: list[str] = []
    for m in _QUOTED_RE.finditer(text or ""):
        inner = next((g for g in m.groups() if g is not None), "")
        if inner.strip():
            out.append(inner.strip())
    return out


def _quoted_or(text: str) -> str:
    quoted = find_quoted(text)
    return quoted[0] if quoted else text


def resolve_due_date(word: str, now: datetime) -> datetime | None:
    w = word.lower()
    if w == "today":
        return now
    if w == "tonight":
        return now.replace(hour=TONIGHT_HOUR, minute=0, second=0, microsecond=0)
    if w == "tomorrow":
        return now + timedelta(days=1)
    if w in WEEKDAYS:
        ahead = (WEEKDAYS.index(w) - now.weekday()) % 7 or 7
        return now + timedelta(days=ahead)
    return None


def extract_metadata(content: str, now: datetime | None = None) -> TaskMetadata:
    """Infer priority, due date and tags from task text. Never raises."""
    text = content or ""

    priority = TaskPriority.MEDIUM
    for level, pattern in PRIORITY_PATTERNS:
        if pattern.search(text):
            priority = level
            break

    due_at: float | None = None
    m = _DATE_RE.search(text)
    if m:
        when = resolve_due_date(m.group(1), now or _local_now())
        if when is not None:
            due_at = when.timestamp()

    tags = tuple(tag for tag, pattern in TAG_PATTERNS if pattern.search(text))
    return TaskMetadata(priority=priority, due_at=due_at, tags=tags)


@dataclass
class KeywordIntentParser:
    """
    Local, deterministic intent parser.

    `now` is injectable so relative dates can be tested.
    """

    now: Callable[[], datetime] = field(default_factory=lambda: _local_now)

    def parse(self, utterance: str, alternatives: Sequence[str] = ()) -> ParsedIntent:
        text = " ".join((utterance or "").split())
        if not text:
            return ParsedIntent(action=Action.UNKNOWN, content="", confidence=0.0)

        text = strip_politeness(_LEADING_FILLER_RE.sub("", text, count=1)) or text
        action, score, keywords = self._classify(text, alternatives)
        confidence = max(0.0, min(1.0, score))

        if action == Action.MODIFY:
            target, content = self._extract_modify(text, keywords)
            return ParsedIntent(
                action=action,
                content=content,
                confidence=confidence,
                keywords=keywords,
                target=target,
            )

        content = self._extract_content(text, action, keywords)
        metadata = extract_metadata(content, self.now()) if action == Action.ADD and content else None
        logger.debug("Parsed intent action=%s confidence=%.2f content=%r", action, confidence, content)
        return ParsedIntent(
            action=action,
            content=content,
            confidence=confidence,
            keywords=keywords,
            target=content,
            metadata=metadata,
        )

    # ---- classification ----

    @staticmethod
    def _classify(text: str, alternatives: Sequence[str]) -> tuple[Action, float, frozenset[str]]:
        lower = text.lower().replace("’", "'")
        all_inputs = [lower, *[a.lower().replace("’", "'") for a in alternatives if a]]

        scores: dict[Action, tuple[float, frozenset[str]]] = {}
        for action, kw in ACTION_KEYWORDS.items():
            score = 0.0
            found: list[str] = []

            for word in kw.primary:
                if _has_word(lower, word):
                    score += kw.weight * PRIMARY_FACTOR
                    found.append(word)

            for word in kw.secondary:
                if _has_word(lower, word):
                    score += kw.weight * SECONDARY_FACTOR
                    found.append(word)

            for phrase in kw.phrases:
                if _has_word(lower, phrase):
                    score += kw.weight * PHRASE_FACTOR
                    found.append(phrase)

            hits = sum(1 for inp in all_inputs if any(_has_word(inp, w) for w in kw.primary))
            if hits > 1:
                score += ALTERNATIVES_BOOST

            scores[action] = (score, frozenset(found))

        ranked = sorted(scores.items(), key=lambda item: item[1][0], reverse=True)
        best_action, (best_score, best_keywords) = ranked[0]
        if best_score <= 0.0:
            return Action.UNKNOWN, 0.0, frozenset()
        if len(ranked) > 1 and abs(ranked[1][1][0] - best_score) < 1e-9:
            return Action.UNKNOWN, best_score, best_keywords | ranked[1][1][1]
        return best_action, best_score, best_keywords

    # ---- content extraction ----

    @staticmethod
    def _extract_content(text: str, action: Action, keywords: frozenset[str]) -> str:
        if action == Action.LIST:
            return ""

        quoted = find_quoted(text)
        if quoted:
            return quoted[0]

        for pattern in EXTRACTION_PATTERNS.get(action, ()):
            m = pattern.match(text)
            if m:
                return strip_politeness(m.groupdict().get("content") or "")

        # No pattern matched: drop the matched keywords wherever they are.
        content = text
        for word in sorted(keywords, key=len, reverse=True):
            content = re.sub(r"(?<![\w'])" + re.escape(word) + r"(?![\w'])", " ", content, count=1, flags=_I)
        return strip_politeness(" ".join(content.split()))

    @staticmethod
    def _extract_modify(text: str, keywords: frozenset[str]) -> tuple[str, str]:
        quoted = find_quoted(text)
        if len(quoted) >= 2:
            return quoted[0], quoted[1]

        for pattern in EXTRACTION_PATTERNS[Action.MODIFY]:
            m = pattern.match(text)
            if not m:
                continue
            groups = m.groupdict()
            target = strip_politeness(_quoted_or(groups.get("target") or ""))
            content = strip_politeness(_quoted_or(groups.get("content") or ""))
            return target, content

        return (quoted[0] if quoted else ""), ""
