# tests/test_intent_parser.py

from __future__ import annotations

from datetime import timedelta

import pytest

from tasktalk.engine.intent import Action, KeywordIntentParser, extract_metadata
from tasktalk.tasks.task_models import TaskPriority

from .conftest import FIXED_NOW


@pytest.mark.parametrize(
    ("utterance", "action", "content"),
    [
        ("Add task: buy milk", Action.ADD, "buy milk"),
        ("Add a task to buy groceries", Action.ADD, "buy groceries"),
        ("create a new task called Review report", Action.ADD, "Review report"),
        ("Remind me to call Riya", Action.ADD, "call Riya"),
        ("please add pick up the kids to my list, thanks", Action.ADD, "pick up the kids"),
        ("Mark call mom as done", Action.COMPLETE, "call mom"),
        ("mark task number 1 as done", Action.COMPLETE, "number 1"),
        ("complete Buy milk", Action.COMPLETE, "Buy milk"),
        ("Buy milk is done", Action.COMPLETE, "Buy milk"),
        ("Delete the meeting task", Action.DELETE, "meeting task"),
        ("delete Buy groceries", Action.DELETE, "Buy groceries"),
        ("remove the dentist appointment please", Action.DELETE, "dentist appointment"),
        ("get rid of old notes", Action.DELETE, "old notes"),
        ("Show my tasks", Action.LIST, ""),
        ("list", Action.LIST, ""),
    ],
)
def test_classification_and_content(
    parser: KeywordIntentParser, utterance: str, action: Action, content: str
) -> None:
    intent = parser.parse(utterance)
    assert intent.action == action
    assert intent.content == content
    assert 0.0 < intent.confidence <= 1.0


def test_modify_extracts_target_and_new_content(parser: KeywordIntentParser) -> None:
    intent = parser.parse("change buy milk to buy oat milk")
    assert intent.action == Action.MODIFY
    assert intent.target == "buy milk"
    assert intent.content == "buy oat milk"


def test_modify_with_two_quotes_uses_them_verbatim(parser: KeywordIntentParser) -> None:
    intent = parser.parse('rename "Buy milk" to "Buy Oat Milk!"')
    assert intent.action == Action.MODIFY
    assert intent.target == "Buy milk"
    assert intent.content == "Buy Oat Milk!"


def test_quoted_content_overrides_extraction(parser: KeywordIntentParser) -> None:
    intent = parser.parse("add 'Finish the Q3 report, please' to my list")
    assert intent.action == Action.ADD
    assert intent.content == "Finish the Q3 report, please"

    intent = parser.parse('delete "Team meeting prep" now')
    assert intent.action == Action.DELETE
    assert intent.content == "Team meeting prep"


def test_apostrophes_are_not_quotes(parser: KeywordIntentParser) -> None:
    intent = parser.parse("don't forget to call mom's friend")
    assert intent.action == Action.ADD
    assert intent.content == "call mom's friend"


def test_empty_content_is_valid(parser: KeywordIntentParser) -> None:
    intent = parser.parse("delete it")
    assert intent.action == Action.DELETE
    assert intent.content == ""

    intent = parser.parse("mark as done")
    assert intent.action == Action.COMPLETE
    assert intent.content == ""


def test_no_keywords_is_unknown(parser: KeywordIntentParser) -> None:
    intent = parser.parse("what's the weather like")
    assert intent.action == Action.UNKNOWN
    assert intent.confidence == 0.0


def test_tie_is_unknown(parser: KeywordIntentParser) -> None:
    # delete primary (0.8 x 0.6) ties with the list phrase "what tasks" (0.6 x 0.8).
    intent = parser.parse("remove what tasks")
    assert intent.action == Action.UNKNOWN


def test_empty_utterance(parser: KeywordIntentParser) -> None:
    intent = parser.parse("   ")
    assert intent.action == Action.UNKNOWN
    assert intent.content == ""


def test_alternatives_boost_confidence(parser: KeywordIntentParser) -> None:
    single = parser.parse("delete buy milk")
    boosted = parser.parse("delete buy milk", alternatives=["delete by milk", "delete buy mill"])
    assert boosted.action == Action.DELETE
    assert boosted.confidence > single.confidence


def test_metadata_only_for_add(parser: KeywordIntentParser) -> None:
    add = parser.parse("add task call the plumber tomorrow urgent")
    assert add.metadata is not None
    assert add.metadata.priority == TaskPriority.URGENT
    assert add.metadata.due_at == pytest.approx((FIXED_NOW + timedelta(days=1)).timestamp())
    assert "call" in add.metadata.tags

    delete = parser.parse("delete call the plumber")
    assert delete.metadata is None


@pytest.mark.parametrize(
    ("text", "priority"),
    [
        ("fix the server asap", TaskPriority.URGENT),
        ("important: renew passport", TaskPriority.HIGH),
        ("clean garage someday", TaskPriority.LOW),
        ("water the plants", TaskPriority.MEDIUM),
    ],
)
def test_priority_classes(text: str, priority: TaskPriority) -> None:
    assert extract_metadata(text, FIXED_NOW).priority == priority


def test_relative_dates() -> None:
    tonight = extract_metadata("movie tonight", FIXED_NOW).due_at
    assert tonight == pytest.approx(FIXED_NOW.replace(hour=20, minute=0, second=0, microsecond=0).timestamp())

    today = extract_metadata("pay rent today", FIXED_NOW).due_at
    assert today == pytest.approx(FIXED_NOW.timestamp())

    # FIXED_NOW is a Wednesday: next Friday is 2 days ahead, next Wednesday 7.
    friday = extract_metadata("submit form friday", FIXED_NOW).due_at
    assert friday == pytest.approx((FIXED_NOW + timedelta(days=2)).timestamp())
    wednesday = extract_metadata("standup wednesday", FIXED_NOW).due_at
    assert wednesday == pytest.approx((FIXED_NOW + timedelta(days=7)).timestamp())

    assert extract_metadata("no date here", FIXED_NOW).due_at is None


def test_tags() -> None:
    meta = extract_metadata("email the report before the meeting", FIXED_NOW)
    assert meta.tags == ("meeting", "email", "document")
    assert extract_metadata("buy milk", FIXED_NOW).tags == ("shopping",)
