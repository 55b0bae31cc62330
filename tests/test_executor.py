# tests/test_executor.py

from __future__ import annotations

from tasktalk.engine.executor import CommandExecutor
from tasktalk.engine.intent import TaskMetadata
from tasktalk.tasks.task_models import Task, TaskPriority, TaskStatus

from .fakes import FailingTaskRepo, FakeTaskRepo


def test_add_uses_content_as_title_and_metadata() -> None:
    repo = FakeTaskRepo()
    res = CommandExecutor(repo).add(
        "  Buy milk  ",
        TaskMetadata(priority=TaskPriority.HIGH, due_at=123.0, tags=("shopping",)),
    )
    assert res.success is True
    assert res.action == "add"
    task = repo.tasks[0]
    assert task.title == "Buy milk"
    assert task.priority == TaskPriority.HIGH
    assert task.status == TaskStatus.PENDING
    assert task.due_at == 123.0
    assert task.tags == ["shopping"]
    assert res.task_affected is task


def test_add_requires_content() -> None:
    repo = FakeTaskRepo()
    res = CommandExecutor(repo).add("   ")
    assert res.success is False
    assert "specify what to add" in res.message
    assert repo.tasks == []


def test_complete_and_already_completed() -> None:
    repo = FakeTaskRepo(["Buy milk"])
    ex = CommandExecutor(repo)
    task = repo.tasks[0]

    res = ex.complete(task)
    assert res.success is True
    assert repo.tasks[0].status == TaskStatus.COMPLETED
    assert res.task_affected is not None and res.task_affected.is_completed

    again = ex.complete(repo.tasks[0])
    assert again.success is False
    assert "already completed" in again.message


def test_complete_of_vanished_task_is_failure() -> None:
    repo = FakeTaskRepo()
    res = CommandExecutor(repo).complete(Task(id="gone", title="Ghost"))
    assert res.success is False
    assert "try again" in res.message.lower()


def test_delete_and_modify() -> None:
    repo = FakeTaskRepo(["Buy milk", "Call mom"])
    ex = CommandExecutor(repo)

    res = ex.modify(repo.tasks[1], "Call dad")
    assert res.success is True
    assert repo.titles() == ["Buy milk", "Call dad"]

    assert ex.modify(repo.tasks[1], " ").success is False
    assert repo.titles() == ["Buy milk", "Call dad"]

    res = ex.delete(repo.tasks[0])
    assert res.success is True
    assert repo.titles() == ["Call dad"]


def test_store_exceptions_become_failures() -> None:
    repo = FailingTaskRepo(["Buy milk"])
    ex = CommandExecutor(repo)
    task = repo.tasks[0]

    for res in (ex.add("x"), ex.complete(task), ex.delete(task), ex.modify(task, "y")):
        assert res.success is False
        assert "Please try again" in res.message

    assert repo.titles() == ["Buy milk"]


def test_list_distinguishes_empty_and_all_done() -> None:
    repo = FakeTaskRepo()
    ex = CommandExecutor(repo)
    assert ex.list_tasks().message == "You don't have any tasks yet."

    repo.seed("Old", status=TaskStatus.COMPLETED)
    res = ex.list_tasks()
    assert res.success is True
    assert "no pending tasks" in res.message


def test_list_numbers_pending_up_to_limit() -> None:
    repo = FakeTaskRepo(["A", "B", "C", "D", "E", "F", "G"])
    repo.tasks[1].status = TaskStatus.COMPLETED
    res = CommandExecutor(repo).list_tasks(limit=5)
    assert res.success is True
    assert [t.title for t in res.listed_tasks] == ["A", "C", "D", "E", "F"]
    assert res.message == "Your tasks: 1. A, 2. C, 3. D, 4. E, 5. F, and 1 more"
