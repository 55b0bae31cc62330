# src/tasktalk/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..core.state import AppState
from ..engine.dialogue import Confirmation, Disambiguation
from ..engine.executor import format_numbered
from ..engine.intent import KeywordIntentParser
from ..llm.extractor import FallbackIntentParser
from ..tts.engine import TTSEngine  # concrete engine (not the Protocol)

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /tts, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_ts(ts: float | None) -> str:
    if not ts:
        return ""
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M")


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    mode = "VOICE (TTS)" if state.tts_enabled else "TEXT ONLY"
    policy = state.engine.policy
    parser = state.engine.parser
    if isinstance(parser, FallbackIntentParser):
        nlp = "remote LLM (local fallback)"
    elif isinstance(parser, KeywordIntentParser):
        nlp = "local keywords"
    else:
        nlp = type(parser).__name__
    return (
        "Status:\n"
        f"  Mode: {mode}\n"
        f"  Intent parser: {nlp}\n"
        f"  Confirm complete: {'ON' if policy.confirm_complete else 'OFF'}\n"
        f"  No-target policy: {policy.no_target_policy.value}\n"
        f"  Dialogue state: {state.session.state}\n"
        f"  Tasks stored: {state.task_store.count_tasks()}"
    )


def cmd_tts(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /tts          -> show status
    /tts on       -> enable TTS
    /tts off      -> disable TTS
    """
    if not args:
        return f"TTS is currently {'ON' if state.tts_enabled else 'OFF'}. Use /tts on or /tts off."

    arg = args[0].lower()

    if arg in ("on", "1", "true", "yes"):
        if state.tts_enabled:
            return "TTS is already ON."

        if emit:
            with contextlib.suppress(Exception):
                emit("[TTS] Enabling... importing deps and loading model (may take a while).")

        # Do NOT duplicate the user-facing message in INFO logs (it prints into console).
        logger.debug("TTS enable requested")

        engine = TTSEngine(enabled=True, settings=state.settings)
        if not engine.enabled:
            return "TTS could not be enabled (see log). Replies stay text-only."
        state.tts_engine = engine
        state.tts_enabled = True
        return "TTS enabled. Replies will be spoken."

    if arg in ("off", "0", "false", "no"):
        if not state.tts_enabled:
            return "TTS is already OFF."

        if emit:
            with contextlib.suppress(Exception):
                emit("[TTS] Disabling...")

        logger.debug("TTS disable requested")

        try:
            state.tts_engine.shutdown()
        except Exception:
            logger.debug("TTS shutdown failed.", exc_info=True)

        state.tts_engine = TTSEngine(enabled=False)
        state.tts_enabled = False
        return "TTS disabled. Replies will be text-only."

    return "Usage: /tts on or /tts off."


def cmd_tasks(state: AppState, args: list[str]) -> str:
    """All tasks, including completed ones, most recent first."""
    tasks = state.task_store.get_all()
    if not tasks:
        return "No tasks stored."
    lines = [f"Tasks ({len(tasks)}):"]
    for i, t in enumerate(tasks, start=1):
        extra = [t.priority.value]
        if t.due_at:
            extra.append(f"due {_fmt_ts(t.due_at)}")
        if t.tags:
            extra.append("tags: " + ", ".join(t.tags))
        lines.append(f"  {i}. [{t.status.value}] {t.title} ({'; '.join(extra)})")
    return "\n".join(lines)


def cmd_pending(state: AppState, args: list[str]) -> str:
    pending = state.session.pending
    if isinstance(pending, Confirmation):
        return f'Waiting for yes/no: {pending.action.value} "{pending.task_title}".'
    if isinstance(pending, Disambiguation):
        return f"Waiting for a choice ({pending.action.value}): {format_numbered(pending.tasks)}"
    return "Nothing pending."


def cmd_cancel(state: AppState, args: list[str]) -> str:
    if state.engine.reset(state.session):
        return "Pending question cancelled."
    return "Nothing to cancel."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show current settings (mode/parser/policy).")
registry.register("tts", cmd_tts, help_text="Enable/disable TTS: /tts on | /tts off.")
registry.register("tasks", cmd_tasks, help_text="Show all tasks with their status.", aliases=["ls"])
registry.register("pending", cmd_pending, help_text="Show the question the assistant is waiting on.")
registry.register("cancel", cmd_cancel, help_text="Drop the pending confirmation/choice.", aliases=["reset"])
