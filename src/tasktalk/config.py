# src/tasktalk/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (the remote intent extractor is optional).
- Invalid values fall back to defaults instead of failing startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "TASKTALK"

DEFAULT_LLM_MODELS = [
    "x-ai/grok-4.1-fast:free",
    "qwen/qwen-2.5-72b-instruct:free",
    "deepseek/deepseek-chat-v3-0324:free",
]


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv
    except ImportError:
        return
    load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Global switches ----
    tts_mode: bool
    console_enabled: bool
    nlp_enabled: bool

    # ---- Engine behaviour ----
    confirm_complete: bool
    no_target_policy: str
    match_threshold: float
    list_limit: int
    hint_limit: int
    min_transcript_confidence: float

    # ---- LLM / OpenRouter ----
    openrouter_api_key: str | None
    openrouter_base_url: str
    llm_models: list[str]
    extra_headers: dict[str, str]
    llm_first_token_timeout_s: float
    llm_read_timeout_s: float
    llm_connect_timeout_s: float

    # ---- TTS ----
    speaker_wav: str
    xtts_speaker_name: str
    xtts_language: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    @staticmethod
    def from_env() -> Settings:
        _load_dotenv_if_available()

        app_name = _first_env(_k("APP_NAME"), default="tasktalk") or "tasktalk"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        tts_mode = _env_bool(_k("TTS_MODE"), False)
        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        nlp_enabled = _env_bool(_k("NLP_ENABLED"), True)

        confirm_complete = _env_bool(_k("CONFIRM_COMPLETE"), False)
        no_target_policy = _env(_k("NO_TARGET_POLICY"), "require").strip().lower() or "require"
        match_threshold = _env_float(_k("MATCH_THRESHOLD"), 0.3)
        list_limit = _env_int(_k("LIST_LIMIT"), 5)
        hint_limit = _env_int(_k("HINT_LIMIT"), 3)
        min_transcript_confidence = _env_float(_k("MIN_TRANSCRIPT_CONFIDENCE"), 0.7)

        openrouter_api_key = _first_env(_k("OPENROUTER_API_KEY"), "OPENROUTER_API_KEY", default=None)
        openrouter_base_url = _env(_k("OPENROUTER_BASE_URL"), "https://openrouter.ai/api/v1")

        http_referer = _env(_k("HTTP_REFERER"), "https://example.com")
        extra_headers = {
            "HTTP-Referer": http_referer,
            "X-Title": app_name,
        }

        llm_models = _env_list(_k("LLM_MODELS"), DEFAULT_LLM_MODELS)

        speaker_wav = _env(_k("SPEAKER_WAV"), "voice_sample.wav")
        xtts_speaker_name = _env(_k("XTTS_SPEAKER_NAME"), "Ana Florence")
        xtts_language = _env(_k("XTTS_LANGUAGE"), "en")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasktalk"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            tts_mode=tts_mode,
            console_enabled=console_enabled,
            nlp_enabled=nlp_enabled,
            confirm_complete=confirm_complete,
            no_target_policy=no_target_policy,
            match_threshold=match_threshold,
            list_limit=list_limit,
            hint_limit=hint_limit,
            min_transcript_confidence=min_transcript_confidence,
            openrouter_api_key=openrouter_api_key,
            openrouter_base_url=openrouter_base_url,
            llm_models=llm_models,
            extra_headers=extra_headers,
            llm_first_token_timeout_s=_env_float(_k("LLM_FIRST_TOKEN_TIMEOUT_SECONDS"), 20.0),
            llm_read_timeout_s=_env_float(_k("LLM_READ_TIMEOUT_SECONDS"), 60.0),
            llm_connect_timeout_s=_env_float(_k("LLM_CONNECT_TIMEOUT_SECONDS"), 10.0),
            speaker_wav=speaker_wav,
            xtts_speaker_name=xtts_speaker_name,
            xtts_language=xtts_language,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings, read from the environment on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
