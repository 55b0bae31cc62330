# src/tasktalk/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the engine.

The engine depends on Protocols instead of concrete implementations.
This keeps storage/NLP/speech providers swappable and makes testing easier.
"""

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Protocol

from ..tasks.task_models import Task, TaskPriority, TaskStatus

if TYPE_CHECKING:
    from ..engine.intent import ParsedIntent

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class IntentParser(Protocol):
    """
    Utterance -> ParsedIntent.

    The local keyword parser and the remote LLM extractor share this contract,
    so either can sit in front of the dialogue state machine.
    """

    def parse(self, utterance: str, alternatives: Sequence[str] = ()) -> ParsedIntent: ...


class TaskRepo(Protocol):
    """
    Task storage as seen by the engine.

    get_all() is ordered most-recent-first. Mutations report failure by
    returning False (unknown id); they may also raise on backend errors.
    """

    def get_all(self) -> list[Task]: ...
    def get_by_id(self, task_id: str) -> Task | None: ...
    def get_by_status(self, status: TaskStatus) -> list[Task]: ...
    def count_tasks(self) -> int: ...

    def add(
            self,
            title: str,
            *,
            description: str | None = None,
            priority: TaskPriority = TaskPriority.MEDIUM,
            status: TaskStatus = TaskStatus.PENDING,
            due_at: float | None = None,
            tags: list[str] | None = None,
    ) -> Task: ...

    def update_status(self, task_id: str, status: TaskStatus) -> bool: ...

    def update(
            self,
            task_id: str,
            *,
            title: str | None = None,
            description: str | None = None,
            priority: TaskPriority | None = None,
            due_at: float | None = None,
            tags: list[str] | None = None,
    ) -> bool: ...

    def delete(self, task_id: str) -> bool: ...


class TTSEngine(Protocol):
    def speak_sentence(self, text: str) -> None: ...
    def wait_all(self) -> None: ...
    def shutdown(self) -> None: ...
