# src/tasktalk/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs the console REPL in the main
thread.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.engine.reset(state.session)
    except Exception:
        logger.debug("Session reset failed.", exc_info=True)

    # TaskStore uses short-lived sqlite connections per call; close() is a no-op hook.
    close = getattr(state.task_store, "close", None)
    if callable(close):
        try:
            close()
        except Exception:
            logger.debug("Task store close failed.", exc_info=True)

    try:
        state.tts_engine.shutdown()
    except Exception:
        logger.debug("TTS shutdown failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    if not isinstance(console_level, int):
        console_level = logging.INFO

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    # Reuse the same settings object everywhere.
    state = create_initial_state(settings=settings)

    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            logger.info("Console disabled; nothing to run. Set TASKTALK_CONSOLE_ENABLED=1.")
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
