# src/tasktalk/engine/dialogue.py

"""
Dialogue state machine.

A DialogueSession holds at most one pending interaction:
- Confirmation: a yes/no gate before a mutation of one known task.
- Disambiguation: several candidate tasks, waiting for the user to pick one.

CommandEngine routes each utterance either to the pending interaction (if
any) or to intent parsing. The session lock is held for the whole utterance,
so reading and clearing the pending slot never interleaves with another
utterance on the same session.

States and transitions:
- idle: parse; ambiguous target -> disambiguation; delete/modify (and
  complete with confirm_complete) on one task -> confirmation; everything
  else executes immediately.
- disambiguation: a number/ordinal or text naming one candidate selects it
  (then confirmation or execution); "no"/"cancel" cancels; anything else
  re-prompts with the same candidates.
- confirmation: yes executes, no cancels, anything else re-prompts.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass

from ..core.ports import IntentParser, TaskRepo
from ..tasks.task_models import Task
from ..voice.transcript import is_valid_transcript
from .executor import CommandExecutor, format_numbered
from .intent import TARGETED_ACTIONS, Action, KeywordIntentParser, ParsedIntent
from .matcher import TaskMatch, find_number_reference, has_reference, match
from .policy import EnginePolicy, NoTargetPolicy
from .replies import NEGATIVE, Reply, classify_reply, normalize_reply
from .results import CommandResult

logger = logging.getLogger(__name__)

HELP_EXAMPLES = (
    "Add task to buy groceries",
    "Mark call mom as done",
    "Delete the meeting task",
    "Show my tasks",
)

_VERBS: dict[Action, str] = {
    Action.COMPLETE: "complete",
    Action.DELETE: "delete",
    Action.MODIFY: "change",
}


@dataclass(frozen=True, slots=True)
class Confirmation:
    task_id: str
    task_title: str
    action: Action
    new_content: str | None = None


@dataclass(frozen=True, slots=True)
class Disambiguation:
    action: Action
    candidates: tuple[TaskMatch, ...]
    new_content: str | None = None

    @property
    def tasks(self) -> list[Task]:
        return [m.task for m in self.candidates]


PendingInteraction = Confirmation | Disambiguation


class DialogueSession:
    """Conversation state of one user. Not shared between users."""

    def __init__(self) -> None:
        self.pending: PendingInteraction | None = None
        self.lock = threading.Lock()

    @property
    def state(self) -> str:
        if isinstance(self.pending, Confirmation):
            return "awaiting_confirmation"
        if isinstance(self.pending, Disambiguation):
            return "awaiting_disambiguation"
        return "idle"

    def clear(self) -> PendingInteraction | None:
        pending, self.pending = self.pending, None
        return pending


def _confirm_prompt(action: Action, title: str, new_content: str | None) -> str:
    if action == Action.DELETE:
        return f'Are you sure you want to delete "{title}"?'
    if action == Action.MODIFY:
        return f'Change "{title}" to "{new_content}"?'
    return f'Mark "{title}" as done?'


class CommandEngine:
    """
    Entry point of the command interpretation core.

    `process_command()` never raises for user input: every problem is
    reported as a CommandResult with success=False.
    """

    def __init__(
        self,
        store: TaskRepo,
        parser: IntentParser | None = None,
        policy: EnginePolicy | None = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        self._store = store
        self._parser: IntentParser = parser or KeywordIntentParser()
        self.policy = policy or EnginePolicy()
        self._executor = executor or CommandExecutor(store)
        self.default_session = DialogueSession()

    @property
    def parser(self) -> IntentParser:
        return self._parser

    # ---- public API ----

    def process_command(
        self,
        utterance: str,
        session: DialogueSession | None = None,
        *,
        alternatives: Sequence[str] = (),
    ) -> CommandResult:
        session = session or self.default_session
        text = " ".join((utterance or "").split())

        with session.lock:
            pending = session.pending
            if isinstance(pending, Confirmation):
                return self._resolve_confirmation(session, pending, text)
            if isinstance(pending, Disambiguation):
                return self._resolve_disambiguation(session, pending, text)

            if not text:
                return CommandResult(
                    success=False,
                    message="Please provide a command.",
                    spoken_reply="I didn't hear anything. Please try again.",
                )
            return self._handle_utterance(session, text, alternatives)

    def process_transcript(
        self,
        text: str,
        confidence: float | None = None,
        alternatives: Sequence[str] = (),
        session: DialogueSession | None = None,
    ) -> CommandResult:
        """
        Speech entry point: drops noise and low-confidence transcripts first.

        While a question is pending, one-character answers ("2", "y") are
        accepted.
        """
        session = session or self.default_session
        if not is_valid_transcript(
            text,
            confidence,
            self.policy.min_transcript_confidence,
            allow_short=session.pending is not None,
        ):
            logger.debug("Transcript rejected text=%r confidence=%s", text, confidence)
            return CommandResult(
                success=False,
                message="Sorry, I had trouble hearing you. Please try again.",
                confidence=confidence,
            )
        return self.process_command(text, session, alternatives=alternatives)

    def reset(self, session: DialogueSession | None = None) -> bool:
        """Drop the pending interaction. Returns True if there was one."""
        session = session or self.default_session
        with session.lock:
            dropped = session.clear()
        if dropped is not None:
            logger.info("Pending interaction cleared state=%s", type(dropped).__name__)
        return dropped is not None

    # ---- idle ----

    def _handle_utterance(
        self,
        session: DialogueSession,
        text: str,
        alternatives: Sequence[str],
    ) -> CommandResult:
        try:
            intent = self._parser.parse(text, alternatives)
        except Exception:
            logger.exception("Intent parser failed")
            return CommandResult(
                success=False,
                message="Sorry, I couldn't process that. Please try again.",
            )

        logger.info("Intent action=%s confidence=%.2f", intent.action, intent.confidence)

        if intent.action == Action.ADD:
            res = self._executor.add(intent.content, intent.metadata)
        elif intent.action == Action.LIST:
            res = self._executor.list_tasks(self.policy.list_limit)
        elif intent.action in TARGETED_ACTIONS:
            res = self._resolve_target(session, intent)
        else:
            res = CommandResult(
                success=False,
                message=f'I didn\'t understand "{text}". Try: {", ".join(HELP_EXAMPLES)}',
                action=Action.UNKNOWN.value,
                spoken_reply=(
                    "I didn't understand that. Try saying 'Add task' followed by what you want to do, "
                    "or 'Mark' and the task name 'as done'."
                ),
            )

        res.confidence = intent.confidence
        return res

    def _resolve_target(self, session: DialogueSession, intent: ParsedIntent) -> CommandResult:
        action = intent.action
        verb = _VERBS[action]
        new_content = intent.content if action == Action.MODIFY else None

        try:
            tasks = self._store.get_all()
        except Exception:
            logger.exception("Store get_all failed")
            return CommandResult(
                success=False,
                message="Failed to load tasks. Please try again.",
                action=action.value,
            )

        if not tasks:
            return CommandResult(
                success=False,
                message="You don't have any tasks yet.",
                action=action.value,
                spoken_reply="You don't have any tasks yet. Try adding one first.",
            )

        # The ordering the user sees in lists; numbers index into it.
        presented = [t for t in tasks if not t.is_completed]
        query = intent.target

        if not has_reference(query):
            if self.policy.no_target_policy == NoTargetPolicy.FIRST_PENDING and presented:
                return self._act_on(session, action, presented[0], new_content)
            return self._failure(
                action,
                f"Please specify which task to {verb}.",
                presented,
                spoken=f"Which task would you like to {verb}?",
            )

        position = find_number_reference(query)
        if position is not None and not 1 <= position <= len(presented):
            return self._failure(action, f"I couldn't find task number {position}.", presented)

        matches = match(query, tasks, numbered=presented, threshold=self.policy.match_threshold)
        if action == Action.COMPLETE and len(matches) > 1:
            open_matches = [m for m in matches if not m.task.is_completed]
            if open_matches:
                matches = open_matches

        if not matches:
            return self._failure(action, f'No task found matching: "{query}".', presented)

        if len(matches) > 1:
            session.pending = Disambiguation(action=action, candidates=tuple(matches), new_content=new_content)
            logger.info("Awaiting disambiguation action=%s candidates=%d", action, len(matches))
            listing = format_numbered([m.task for m in matches])
            return CommandResult(
                success=False,
                message=f'I found {len(matches)} tasks matching "{query}". Which one did you mean? {listing}',
                action=action.value,
                requires_disambiguation=True,
                candidate_tasks=[m.task for m in matches],
                spoken_reply=f"I found {len(matches)} matching tasks. Which one? {listing}",
            )

        return self._act_on(session, action, matches[0].task, new_content)

    # ---- shared ----

    def _act_on(
        self,
        session: DialogueSession,
        action: Action,
        task: Task,
        new_content: str | None,
    ) -> CommandResult:
        """Single resolved task: ask for confirmation or execute."""
        if action == Action.COMPLETE and task.is_completed:
            return self._executor.complete(task)
        if action == Action.MODIFY and not (new_content or "").strip():
            return self._executor.modify(task, "")

        needs_confirmation = action in (Action.DELETE, Action.MODIFY) or (
            action == Action.COMPLETE and self.policy.confirm_complete
        )
        if not needs_confirmation:
            return self._execute(action, task, new_content)

        session.pending = Confirmation(
            task_id=task.id,
            task_title=task.title,
            action=action,
            new_content=new_content,
        )
        logger.info("Awaiting confirmation action=%s task=%s", action, task.id)
        prompt = _confirm_prompt(action, task.title, new_content)
        return CommandResult(
            success=False,
            message=f"{prompt} Say 'yes' to confirm or 'no' to cancel.",
            action=action.value,
            requires_confirmation=True,
            candidate_tasks=[task],
            task_affected=task,
            spoken_reply=f"{prompt} Say yes to confirm or no to cancel.",
        )

    def _execute(self, action: Action, task: Task, new_content: str | None) -> CommandResult:
        if action == Action.COMPLETE:
            return self._executor.complete(task)
        if action == Action.DELETE:
            return self._executor.delete(task)
        return self._executor.modify(task, new_content or "")

    def _lookup(self, task_id: str) -> Task | None:
        try:
            return self._store.get_by_id(task_id)
        except Exception:
            logger.exception("Store get_by_id failed id=%s", task_id)
            return None

    def _failure(
        self,
        action: Action,
        message: str,
        presented: list[Task],
        *,
        spoken: str | None = None,
    ) -> CommandResult:
        """Resolution failure, oriented with a few of the current task titles."""
        hints = [t.title for t in presented[: self.policy.hint_limit]]
        if hints:
            message = f"{message} Available tasks: {', '.join(hints)}"
        elif not presented:
            message = f"{message} You have no pending tasks."
        return CommandResult(
            success=False,
            message=message,
            action=action.value,
            spoken_reply=spoken,
        )

    @staticmethod
    def _cancelled(action: Action) -> CommandResult:
        return CommandResult(
            success=True,
            message="Action cancelled.",
            action=action.value,
            cancelled=True,
            spoken_reply="Okay, I cancelled that.",
        )

    def _cancel_disambiguation(self, session: DialogueSession, pending: Disambiguation) -> CommandResult:
        session.clear()
        logger.info("Disambiguation cancelled action=%s", pending.action)
        return self._cancelled(pending.action)

    # ---- awaiting confirmation ----

    def _resolve_confirmation(
        self,
        session: DialogueSession,
        pending: Confirmation,
        text: str,
    ) -> CommandResult:
        reply = classify_reply(text)

        if reply == Reply.NO:
            session.clear()
            logger.info("Confirmation declined action=%s task=%s", pending.action, pending.task_id)
            return self._cancelled(pending.action)

        if reply == Reply.UNCLEAR:
            verb = _VERBS[pending.action]
            return CommandResult(
                success=False,
                message=f'Please say "yes" to {verb} "{pending.task_title}" or "no" to cancel.',
                action=pending.action.value,
                requires_confirmation=True,
                spoken_reply="Please say yes to confirm or no to cancel.",
            )

        # Cleared before the store call: a failed attempt is not retried.
        session.clear()
        task = self._lookup(pending.task_id)
        if task is None:
            return CommandResult(
                success=False,
                message=f'Task "{pending.task_title}" no longer exists.',
                action=pending.action.value,
            )
        return self._execute(pending.action, task, pending.new_content)

    # ---- awaiting disambiguation ----

    def _resolve_disambiguation(
        self,
        session: DialogueSession,
        pending: Disambiguation,
        text: str,
    ) -> CommandResult:
        candidates = pending.tasks

        if normalize_reply(text) in NEGATIVE:
            return self._cancel_disambiguation(session, pending)

        chosen: Task | None = None
        position = find_number_reference(text)
        if position is not None:
            if 1 <= position <= len(candidates):
                chosen = candidates[position - 1]
        elif text:
            hits = match(text, candidates, threshold=self.policy.match_threshold)
            if len(hits) == 1:
                chosen = hits[0].task

        # Titles may contain "stop" or "cancel": a candidate hit wins over the patterns.
        if chosen is None and classify_reply(text) == Reply.NO:
            return self._cancel_disambiguation(session, pending)

        if chosen is None:
            listing = format_numbered(candidates)
            return CommandResult(
                success=False,
                message=f"Please choose 1 to {len(candidates)}, or say cancel: {listing}",
                action=pending.action.value,
                requires_disambiguation=True,
                candidate_tasks=candidates,
                spoken_reply=f"Which one? Say a number from 1 to {len(candidates)}, or cancel.",
            )

        session.clear()
        current = self._lookup(chosen.id)
        if current is None:
            return CommandResult(
                success=False,
                message=f'Task "{chosen.title}" no longer exists.',
                action=pending.action.value,
            )
        return self._act_on(session, pending.action, current, pending.new_content)
