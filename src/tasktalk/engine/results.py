# src/tasktalk/engine/results.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_models import Task


def task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "priority": task.priority.value,
        "status": task.status.value,
        "dueDate": task.due_at,
        "tags": list(task.tags),
    }


@dataclass(slots=True)
class CommandResult:
    """
    Outcome of one utterance.

    Prompts (confirmation / disambiguation requests) are reported with
    success=False and the matching requires_* flag set.
    """

    success: bool
    message: str
    action: str | None = None
    requires_confirmation: bool = False
    requires_disambiguation: bool = False
    candidate_tasks: list[Task] = field(default_factory=list)
    task_affected: Task | None = None
    confidence: float | None = None

    # Shorter wording for speech output; presentation falls back to `message`.
    spoken_reply: str | None = None
    listed_tasks: list[Task] = field(default_factory=list)
    cancelled: bool = False

    @property
    def reply_text(self) -> str:
        return self.spoken_reply or self.message

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.action is not None:
            out["action"] = self.action
        if self.requires_confirmation:
            out["requiresConfirmation"] = True
        if self.requires_disambiguation:
            out["requiresDisambiguation"] = True
        if self.candidate_tasks:
            out["candidateTasks"] = [task_to_dict(t) for t in self.candidate_tasks]
        if self.task_affected is not None:
            out["taskAffected"] = task_to_dict(self.task_affected)
        if self.confidence is not None:
            out["confidence"] = self.confidence
        if self.spoken_reply:
            out["spokenReply"] = self.spoken_reply
        if self.listed_tasks:
            out["tasks"] = [task_to_dict(t) for t in self.listed_tasks]
        if self.cancelled:
            out["cancelled"] = True
        return out
