# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from tasktalk.core.state import AppState
from tasktalk.engine.dialogue import CommandEngine
from tasktalk.engine.intent import KeywordIntentParser
from tasktalk.engine.policy import EnginePolicy
from tasktalk.tasks.task_store import TaskStore
from tasktalk.tts.engine import TTSEngine

from .fakes import FakeTaskRepo

# Wednesday, so weekday arithmetic is easy to follow in tests.
FIXED_NOW = datetime(2024, 5, 15, 9, 30).astimezone()


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="tasktalk-test",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        tts_mode=False,
        nlp_enabled=False,
        confirm_complete=False,
        no_target_policy="require",
        match_threshold=0.3,
        list_limit=5,
        hint_limit=3,
        min_transcript_confidence=0.7,
        openrouter_api_key=None,
        openrouter_base_url="https://openrouter.ai/api/v1",
        llm_models=["test/model"],
        extra_headers={},
    )


@pytest.fixture()
def parser() -> KeywordIntentParser:
    return KeywordIntentParser(now=lambda: FIXED_NOW)


@pytest.fixture()
def repo() -> FakeTaskRepo:
    return FakeTaskRepo()


@pytest.fixture()
def engine(repo: FakeTaskRepo, parser: KeywordIntentParser) -> CommandEngine:
    return CommandEngine(repo, parser=parser, policy=EnginePolicy())


@pytest.fixture()
def task_store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path)


@pytest.fixture()
def state(settings: SimpleNamespace, task_store: TaskStore, parser: KeywordIntentParser) -> AppState:
    """
    AppState wired with deterministic parts.

    NOTE: We keep the real SQLite TaskStore here because its ordering and
    status rules are part of what we want to test.
    """
    return AppState(
        settings=settings,
        task_store=task_store,
        engine=CommandEngine(task_store, parser=parser, policy=EnginePolicy.from_settings(settings)),
        tts_engine=TTSEngine(enabled=False),
        tts_enabled=False,
    )
