# src/tasktalk/engine/executor.py

from __future__ import annotations

import dataclasses
import logging

from ..core.ports import TaskRepo
from ..tasks.task_models import Task, TaskStatus
from .intent import Action, TaskMetadata
from .results import CommandResult

logger = logging.getLogger(__name__)


def _retry(verb: str) -> str:
    return f"Failed to {verb} task. Please try again."


def format_numbered(tasks: list[Task]) -> str:
    return ", ".join(f"{i}. {t.title}" for i, t in enumerate(tasks, start=1))


class CommandExecutor:
    """
    Performs one store mutation per call and describes the outcome.

    Every method returns a CommandResult. Exceptions raised by the store and
    `False` returns are both reported as a failure result; nothing is retried.
    """

    def __init__(self, store: TaskRepo) -> None:
        self._store = store

    def add(self, content: str, metadata: TaskMetadata | None = None) -> CommandResult:
        title = (content or "").strip()
        if not title:
            return CommandResult(
                success=False,
                message="Please specify what to add.",
                action=Action.ADD.value,
                spoken_reply="What task would you like me to add?",
            )

        meta = metadata or TaskMetadata()
        try:
            task = self._store.add(
                title,
                priority=meta.priority,
                status=TaskStatus.PENDING,
                due_at=meta.due_at,
                tags=list(meta.tags),
            )
        except Exception:
            logger.exception("Store add failed title=%r", title)
            return CommandResult(success=False, message=_retry("add"), action=Action.ADD.value)

        logger.info("Task added id=%s", task.id)
        return CommandResult(
            success=True,
            message=f'Added task: "{task.title}"',
            action=Action.ADD.value,
            task_affected=task,
            spoken_reply=f"Added task: {task.title}",
        )

    def complete(self, task: Task) -> CommandResult:
        if task.is_completed:
            return CommandResult(
                success=False,
                message=f'Task "{task.title}" is already completed.',
                action=Action.COMPLETE.value,
                task_affected=task,
                spoken_reply="That task is already done.",
            )

        try:
            ok = self._store.update_status(task.id, TaskStatus.COMPLETED)
        except Exception:
            logger.exception("Store update_status failed id=%s", task.id)
            ok = False

        if not ok:
            return CommandResult(
                success=False,
                message=_retry("complete"),
                action=Action.COMPLETE.value,
                spoken_reply="Sorry, I couldn't complete that task.",
            )

        updated = dataclasses.replace(task, status=TaskStatus.COMPLETED)
        logger.info("Task completed id=%s", task.id)
        return CommandResult(
            success=True,
            message=f'Completed task: "{task.title}"',
            action=Action.COMPLETE.value,
            task_affected=updated,
            spoken_reply=f'Marked "{task.title}" as done. Great job!',
        )

    def delete(self, task: Task) -> CommandResult:
        try:
            ok = self._store.delete(task.id)
        except Exception:
            logger.exception("Store delete failed id=%s", task.id)
            ok = False

        if not ok:
            return CommandResult(
                success=False,
                message=_retry("delete"),
                action=Action.DELETE.value,
                spoken_reply="Sorry, I couldn't delete that task.",
            )

        logger.info("Task deleted id=%s", task.id)
        return CommandResult(
            success=True,
            message=f'Deleted task: "{task.title}"',
            action=Action.DELETE.value,
            task_affected=task,
            spoken_reply=f'Deleted "{task.title}".',
        )

    def modify(self, task: Task, new_title: str) -> CommandResult:
        title = (new_title or "").strip()
        if not title:
            return CommandResult(
                success=False,
                message=f'What should "{task.title}" be changed to?',
                action=Action.MODIFY.value,
                task_affected=task,
            )

        try:
            ok = self._store.update(task.id, title=title)
        except Exception:
            logger.exception("Store update failed id=%s", task.id)
            ok = False

        if not ok:
            return CommandResult(
                success=False,
                message=_retry("update"),
                action=Action.MODIFY.value,
                spoken_reply="Sorry, I couldn't update that task.",
            )

        logger.info("Task renamed id=%s", task.id)
        return CommandResult(
            success=True,
            message=f'Renamed "{task.title}" to "{title}".',
            action=Action.MODIFY.value,
            task_affected=dataclasses.replace(task, title=title),
        )

    def list_tasks(self, limit: int = 5) -> CommandResult:
        try:
            tasks = self._store.get_all()
        except Exception:
            logger.exception("Store get_all failed")
            return CommandResult(
                success=False,
                message="Failed to load tasks. Please try again.",
                action=Action.LIST.value,
            )

        if not tasks:
            return CommandResult(
                success=True,
                message="You don't have any tasks yet.",
                action=Action.LIST.value,
                spoken_reply="Your task list is empty.",
            )

        pending = [t for t in tasks if not t.is_completed]
        if not pending:
            return CommandResult(
                success=True,
                message="You have no pending tasks. Great job!",
                action=Action.LIST.value,
                spoken_reply="You have no pending tasks. You're all caught up!",
            )

        shown = pending[: max(1, limit)]
        text = format_numbered(shown)
        rest = len(pending) - len(shown)
        if rest > 0:
            text += f", and {rest} more"

        noun = "task" if len(pending) == 1 else "tasks"
        return CommandResult(
            success=True,
            message=f"Your tasks: {text}",
            action=Action.LIST.value,
            listed_tasks=shown,
            spoken_reply=f"You have {len(pending)} pending {noun}: {text}",
        )
