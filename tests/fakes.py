# tests/fakes.py

from __future__ import annotations

import itertools
from collections.abc import Iterable

from tasktalk.core.ports import ChatMessage
from tasktalk.tasks.task_models import Task, TaskPriority, TaskStatus, can_transition


class FakeLLMClient:
    """
    Deterministic LLM client for unit tests.

    - Captures calls for assertions
    - Yields a predefined text as a single chunk (or raises `error`)
    """

    def __init__(self, next_text: str = "ok", error: Exception | None = None) -> None:
        self.next_text = next_text
        self.error = error
        self.calls: list[tuple[list[ChatMessage], str]] = []

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        self.calls.append((messages, system_prompt))
        if self.error is not None:
            raise self.error
        yield self.next_text


class FakeTaskRepo:
    """
    In-memory TaskRepo.

    `tasks` is kept in presentation order (most recent first): seeded tasks
    keep the order given, add() inserts at the front.
    """

    def __init__(self, titles: Iterable[str] = ()) -> None:
        self._ids = itertools.count(1)
        self.tasks: list[Task] = [Task(id=self._next_id(), title=t) for t in titles]
        self.calls: list[str] = []

    def _next_id(self) -> str:
        return f"t{next(self._ids)}"

    def seed(self, title: str, status: TaskStatus = TaskStatus.PENDING) -> Task:
        """Append a task at the end of the ordering."""
        task = Task(id=self._next_id(), title=title, status=status)
        self.tasks.append(task)
        return task

    def titles(self) -> list[str]:
        return [t.title for t in self.tasks]

    def get_all(self) -> list[Task]:
        return list(self.tasks)

    def get_by_id(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    def get_by_status(self, status: TaskStatus) -> list[Task]:
        return [t for t in self.tasks if t.status == status]

    def count_tasks(self) -> int:
        return len(self.tasks)

    def add(
        self,
        title: str,
        *,
        description: str | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        status: TaskStatus = TaskStatus.PENDING,
        due_at: float | None = None,
        tags: list[str] | None = None,
    ) -> Task:
        self.calls.append("add")
        task = Task(
            id=self._next_id(),
            title=title.strip(),
            description=description,
            priority=priority,
            status=status,
            due_at=due_at,
            tags=list(tags or []),
        )
        self.tasks.insert(0, task)
        return task

    def update_status(self, task_id: str, status: TaskStatus) -> bool:
        self.calls.append("update_status")
        task = self.get_by_id(task_id)
        if task is None or not can_transition(task.status, status):
            return False
        task.status = status
        return True

    def update(self, task_id: str, **fields) -> bool:
        self.calls.append("update")
        task = self.get_by_id(task_id)
        if task is None:
            return False
        for name, value in fields.items():
            if value is not None:
                setattr(task, name, value)
        return True

    def delete(self, task_id: str) -> bool:
        self.calls.append("delete")
        task = self.get_by_id(task_id)
        if task is None:
            return False
        self.tasks.remove(task)
        return True


class FailingTaskRepo(FakeTaskRepo):
    """Reads work; every mutation raises, like a store whose backend went away."""

    def add(self, title: str, **kwargs) -> Task:
        raise RuntimeError("store offline")

    def update_status(self, task_id: str, status: TaskStatus) -> bool:
        raise RuntimeError("store offline")

    def update(self, task_id: str, **fields) -> bool:
        raise RuntimeError("store offline")

    def delete(self, task_id: str) -> bool:
        raise RuntimeError("store offline")


class FakeTTS:
    """Records what would have been spoken."""

    def __init__(self) -> None:
        self.enabled = True
        self.spoken: list[str] = []

    def speak_sentence(self, text: str) -> None:
        self.spoken.append(text)

    def speak(self, text: str) -> None:
        self.spoken.append(text)

    def wait_all(self) -> None:
        return

    def shutdown(self) -> None:
        self.enabled = False
