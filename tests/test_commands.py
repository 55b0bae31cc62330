# tests/test_commands.py

from __future__ import annotations

from tasktalk.cli.commands import CommandRegistry, registry


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b")

    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/b y", emit=lambda _: None) == "h3"
    assert called["h2"] == 1
    assert called["h3"] == 1


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_help_lists_builtin_commands(state) -> None:
    text = registry.handle(state, "/help") or ""
    for name in ("/status", "/tts", "/tasks", "/pending", "/cancel"):
        assert name in text


def test_tasks_and_status(state) -> None:
    assert registry.handle(state, "/tasks") == "No tasks stored."

    state.engine.process_command("add task buy milk", state.session)
    out = registry.handle(state, "/tasks") or ""
    assert "[pending] buy milk" in out

    status = registry.handle(state, "/status") or ""
    assert "TEXT ONLY" in status
    assert "local keywords" in status
    assert "Tasks stored: 1" in status


def test_pending_and_cancel(state) -> None:
    state.engine.process_command("add task buy milk", state.session)
    assert registry.handle(state, "/pending") == "Nothing pending."

    state.engine.process_command("delete buy milk", state.session)
    assert 'delete "buy milk"' in (registry.handle(state, "/pending") or "")

    assert registry.handle(state, "/cancel") == "Pending question cancelled."
    assert registry.handle(state, "/cancel") == "Nothing to cancel."
    assert state.task_store.count_tasks() == 1


def test_tts_off_when_already_off(state) -> None:
    assert "OFF" in (registry.handle(state, "/tts") or "")
    assert registry.handle(state, "/tts off") == "TTS is already OFF."
    assert "Usage" in (registry.handle(state, "/tts maybe") or "")
