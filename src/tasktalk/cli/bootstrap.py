# src/tasktalk/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (store/parser/engine/TTS).
"""

from __future__ import annotations

import logging
from typing import Any

from ..config import get_settings
from ..core.ports import IntentParser
from ..core.state import AppState
from ..engine.dialogue import CommandEngine
from ..engine.intent import KeywordIntentParser
from ..engine.policy import EnginePolicy
from ..llm.client import OpenRouterLLMClient, friendly_llm_error_message
from ..llm.extractor import FallbackIntentParser, LLMIntentExtractor
from ..tasks.task_store import TaskStore
from ..tts.engine import TTSEngine

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Any) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_intent_parser(settings: Any) -> IntentParser:
    """
    Local keyword parser, fronted by the remote LLM extractor when one is
    configured. A missing API key is not an error: the local parser is used.
    """
    local = KeywordIntentParser()
    if not getattr(settings, "nlp_enabled", False):
        return local

    try:
        llm = OpenRouterLLMClient(settings)
    except RuntimeError as e:
        logger.info("Remote intent extraction off: %s", friendly_llm_error_message(e))
        return local

    logger.info("Remote intent extraction on (models=%s).", ", ".join(llm.models))
    return FallbackIntentParser(primary=LLMIntentExtractor(llm), fallback=local)


def create_initial_state(*, settings: Any = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStore(settings.tasks_db_path)
    engine = CommandEngine(
        store,
        parser=build_intent_parser(settings),
        policy=EnginePolicy.from_settings(settings),
    )

    return AppState(
        settings=settings,
        task_store=store,
        engine=engine,
        tts_engine=TTSEngine(enabled=settings.tts_mode, settings=settings),
        tts_enabled=settings.tts_mode,
    )
