# src/tasktalk/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    if sys.stdout.isatty():
        sys.stdout.write("\033[1A\033[2K\r")
        sys.stdout.write(line + "\n")
        sys.stdout.flush()
    else:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _speak(state: AppState, text: str) -> None:
    if not state.tts_enabled or not text:
        return
    try:
        state.tts_engine.speak(text)
        state.tts_engine.wait_all()
    except Exception:
        logger.debug("TTS speak failed.", exc_info=True)


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (tts=%s).", state.tts_enabled)
    _print_ts("[CONSOLE] Tell me what to do with your tasks. Use /help for commands. Use /exit to quit.\n")

    app_name = str(getattr(state.settings, "app_name", "tasktalk"))

    def emit(text: str) -> None:
        # Immediate user-visible feedback for long operations (e.g., TTS init)
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = input(">>> You: ").strip()
            _rewrite_prev_line(f"[{_ts_local()}] >>> You: {user_input}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            cmd_response = command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is not None:
            _print_ts(cmd_response)
            continue

        try:
            result = state.engine.process_command(user_input, state.session)
        except Exception:
            logger.exception("Engine crashed on input.")
            _print_ts("Internal error while processing the command.")
            continue

        _print_ts(f"<<< {app_name}: {result.message}")

        _speak(state, result.reply_text)

    logger.info("Console connector finished.")
