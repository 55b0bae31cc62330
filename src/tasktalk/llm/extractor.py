# src/tasktalk/llm/extractor.py

"""
Remote intent extraction through an LLM.

LLMIntentExtractor asks the model for a strict JSON object and maps it to a
ParsedIntent. It raises IntentExtractionError on any problem; it never
guesses. FallbackIntentParser puts it in front of the local keyword parser so
that an unreachable or confused model degrades to local parsing.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..core.ports import IntentParser, LLMClient
from ..engine.intent import Action, ParsedIntent, TaskMetadata, extract_metadata, resolve_due_date
from ..tasks.task_models import TaskPriority

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.9

INTENT_EXTRACTOR_SYSTEM_PROMPT = """
You are a command parser for a task manager.

You do NOT chat with the user.

You read ONE spoken or typed command and return a JSON object:
{
  "action": "add" | "complete" | "delete" | "modify" | "list" | "unknown",
  "title": "task text to add, or the new text for modify",
  "target": "words naming the existing task for complete/delete/modify",
  "priority": "urgent" | "high" | "medium" | "low",
  "date": "YYYY-MM-DD, or today/tomorrow/tonight/weekday name, if mentioned",
  "time": "HH:MM (24h) if mentioned",
  "confidence": 0.0-1.0
}

Rules:
- Keep task text exactly as the user said it; do not rephrase or translate.
- "target" may be a number ("2") when the user refers to a position.
- Leave "target" empty if the user does not name a task.

Examples:
- "Remind me to call Riya at 6 PM" -> {"action": "add", "title": "call Riya at 6 PM", "time": "18:00", "priority": "medium"}
- "Mark the second task as done" -> {"action": "complete", "target": "2"}
- "Rename buy milk to buy oat milk" -> {"action": "modify", "target": "buy milk", "title": "buy oat milk"}

Output format:
Return STRICT JSON only. No extra text. No Markdown.
""".strip()

# Older prompt variants answered with a "type" describing the kind of item.
_ACTION_ALIASES: dict[str, Action] = {
    "task": Action.ADD,
    "reminder": Action.ADD,
    "meeting": Action.ADD,
    "note": Action.ADD,
    "create": Action.ADD,
    "done": Action.COMPLETE,
    "finish": Action.COMPLETE,
    "remove": Action.DELETE,
    "edit": Action.MODIFY,
    "update": Action.MODIFY,
    "rename": Action.MODIFY,
    "show": Action.LIST,
}


class IntentExtractionError(RuntimeError):
    """The remote extractor could not produce an intent."""


def _extract_json_object(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("{") and raw.endswith("}"):
        return raw
    first = raw.find("{")
    last = raw.rfind("}")
    if first != -1 and last != -1 and last > first:
        return raw[first : last + 1]
    raise IntentExtractionError("No JSON object in LLM response.")


def _norm_action(v: Any) -> Action:
    s = str(v or "").strip().lower()
    try:
        return Action(s)
    except ValueError:
        return _ACTION_ALIASES.get(s, Action.UNKNOWN)


def _str(v: Any) -> str:
    return " ".join(str(v).split()) if v is not None else ""


def _resolve_due(date_raw: str, time_raw: str, now: datetime) -> float | None:
    when: datetime | None = None
    if date_raw:
        when = resolve_due_date(date_raw, now)
        if when is None:
            try:
                when = datetime.strptime(date_raw, "%Y-%m-%d").replace(
                    hour=now.hour, minute=now.minute, tzinfo=now.tzinfo
                )
            except ValueError:
                logger.debug("Ignoring unparseable date from LLM: %r", date_raw)
                return None

    if time_raw:
        try:
            hh_mm = datetime.strptime(time_raw, "%H:%M")
        except ValueError:
            logger.debug("Ignoring unparseable time from LLM: %r", time_raw)
        else:
            when = (when or now).replace(hour=hh_mm.hour, minute=hh_mm.minute, second=0, microsecond=0)

    return when.timestamp() if when is not None else None


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class LLMIntentExtractor:
    """IntentParser backed by an LLMClient."""

    llm: LLMClient
    now: Callable[[], datetime] = field(default_factory=lambda: _local_now)

    def parse(self, utterance: str, alternatives: Sequence[str] = ()) -> ParsedIntent:
        text = " ".join((utterance or "").split())
        if not text:
            raise IntentExtractionError("Empty utterance.")

        lines = [f'Command: "{text}"']
        if alternatives:
            lines.append("Other possible transcriptions: " + "; ".join(f'"{a}"' for a in alternatives if a))

        try:
            raw = "".join(
                self.llm.stream_chat(
                    [{"role": "user", "content": "\n".join(lines)}],
                    INTENT_EXTRACTOR_SYSTEM_PROMPT,
                )
            )
        except Exception as e:
            raise IntentExtractionError(f"LLM call failed: {e}") from e

        try:
            data = json.loads(_extract_json_object(raw))
        except ValueError as e:
            raise IntentExtractionError("LLM response is not valid JSON.") from e

        if not isinstance(data, dict):
            raise IntentExtractionError("LLM response is not a JSON object.")

        return self._to_intent(data)

    def _to_intent(self, data: dict[str, Any]) -> ParsedIntent:
        action = _norm_action(data.get("action") or data.get("type"))
        title = _str(data.get("title"))
        target = _str(data.get("target") or data.get("targetId"))

        try:
            confidence = float(data.get("confidence", DEFAULT_CONFIDENCE))
        except (TypeError, ValueError):
            confidence = DEFAULT_CONFIDENCE
        confidence = max(0.0, min(1.0, confidence))

        if action == Action.ADD:
            if not title:
                raise IntentExtractionError("LLM returned an add without a title.")
            now = self.now()
            local = extract_metadata(title, now)
            priority = TaskPriority.from_db(str(data.get("priority") or local.priority.value).lower())
            due_at = _resolve_due(_str(data.get("date")), _str(data.get("time")), now)
            metadata = TaskMetadata(
                priority=priority,
                due_at=due_at if due_at is not None else local.due_at,
                tags=local.tags,
            )
            return ParsedIntent(
                action=action,
                content=title,
                confidence=confidence,
                target=title,
                metadata=metadata,
            )

        if action == Action.MODIFY:
            return ParsedIntent(action=action, content=title, confidence=confidence, target=target)

        if action in (Action.COMPLETE, Action.DELETE):
            target = target or title
            return ParsedIntent(action=action, content=target, confidence=confidence, target=target)

        if action == Action.LIST:
            return ParsedIntent(action=action, content="", confidence=confidence)

        raise IntentExtractionError("LLM could not classify the command.")


@dataclass
class FallbackIntentParser:
    """Try `primary`; on any exception use `fallback`."""

    primary: IntentParser
    fallback: IntentParser

    def parse(self, utterance: str, alternatives: Sequence[str] = ()) -> ParsedIntent:
        try:
            return self.primary.parse(utterance, alternatives)
        except Exception as e:
            logger.warning("Remote intent extraction failed (%s); using local parser.", e)
            return self.fallback.parse(utterance, alternatives)
