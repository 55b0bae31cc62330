# src/tasktalk/engine/policy.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class NoTargetPolicy(StrEnum):
    """What complete/delete/modify do when the utterance names no task."""

    REQUIRE = "require"
    FIRST_PENDING = "first_pending"

    @classmethod
    def parse(cls, raw: str | None) -> NoTargetPolicy:
        value = (raw or "").strip().lower().replace("-", "_")
        try:
            return cls(value)
        except ValueError:
            if value:
                logger.warning("Unknown no-target policy %r; using %s", raw, cls.REQUIRE.value)
            return cls.REQUIRE


@dataclass(frozen=True, slots=True)
class EnginePolicy:
    """
    Behaviour switches of the dialogue engine.

    - confirm_complete: ask yes/no before completing a task (delete and
      modify always ask).
    - no_target_policy: REQUIRE asks which task; FIRST_PENDING acts on task 1
      of the presented (most-recent-first, not completed) ordering.
    - match_threshold: minimum similarity for a candidate.
    - list_limit / hint_limit: tasks shown by `list` and in "not found" hints.
    - min_transcript_confidence: speech transcripts below this are rejected.
    """

    confirm_complete: bool = False
    no_target_policy: NoTargetPolicy = NoTargetPolicy.REQUIRE
    match_threshold: float = 0.3
    list_limit: int = 5
    hint_limit: int = 3
    min_transcript_confidence: float = 0.7

    @classmethod
    def from_settings(cls, settings: Any) -> EnginePolicy:
        default = cls()
        return cls(
            confirm_complete=bool(getattr(settings, "confirm_complete", default.confirm_complete)),
            no_target_policy=NoTargetPolicy.parse(
                getattr(settings, "no_target_policy", default.no_target_policy.value)
            ),
            match_threshold=float(getattr(settings, "match_threshold", default.match_threshold)),
            list_limit=max(1, int(getattr(settings, "list_limit", default.list_limit))),
            hint_limit=max(0, int(getattr(settings, "hint_limit", default.hint_limit))),
            min_transcript_confidence=float(
                getattr(settings, "min_transcript_confidence", default.min_transcript_confidence)
            ),
        )
