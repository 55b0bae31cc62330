# src/tasktalk/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..engine.dialogue import CommandEngine, DialogueSession
from ..tts.engine import TTSEngine
from .ports import TaskRepo


@dataclass
class AppState:
    """
    Runtime application state shared by connectors and commands.

    `settings` is injected (not read from globals) so tests can pass a
    SimpleNamespace.
    """

    settings: Any
    task_store: TaskRepo
    engine: CommandEngine
    tts_engine: TTSEngine
    tts_enabled: bool

    # One console user, one conversation.
    session: DialogueSession = field(default_factory=DialogueSession)
