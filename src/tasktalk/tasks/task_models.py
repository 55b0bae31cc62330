# src/tasktalk/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Allowed transitions:
    - pending -> in-progress -> completed
    - pending -> completed
    Nothing moves out of completed (reopening is not modelled).
    """

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


class TaskPriority(StrEnum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskPriority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except ValueError:
            return cls.MEDIUM


_ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED}),
    TaskStatus.COMPLETED: frozenset(),
}


def can_transition(current: TaskStatus, new: TaskStatus) -> bool:
    if current == new:
        return False
    return new in _ALLOWED_TRANSITIONS.get(current, frozenset())


@dataclass(slots=True)
class Task:
    id: str
    title: str
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING

    description: str | None = None
    due_at: float | None = None
    tags: list[str] = field(default_factory=list)

    created_at: float = 0.0
    updated_at: float = 0.0

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED
