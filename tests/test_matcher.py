# tests/test_matcher.py

from __future__ import annotations

import pytest

from tasktalk.engine.matcher import MatchType, find_number_reference, match, score_title
from tasktalk.tasks.task_models import Task, TaskStatus


def _tasks(*titles: str) -> list[Task]:
    return [Task(id=f"id{i}", title=t) for i, t in enumerate(titles, start=1)]


def test_exact_title_is_unique_top_candidate() -> None:
    tasks = _tasks("Buy milk", "Buy milk and eggs", "Call mom")
    res = match("BUY MILK", tasks)
    assert [m.task.title for m in res] == ["Buy milk"]
    assert res[0].score == 1.0
    assert res[0].match_type == MatchType.EXACT


def test_exact_title_with_filler_words_still_wins() -> None:
    tasks = _tasks("Call the dentist", "Call the dentist back")
    res = match("call the dentist", tasks)
    assert len(res) == 1
    assert res[0].task.title == "Call the dentist"
    assert res[0].score == 1.0


def test_substring_either_direction_is_partial() -> None:
    tasks = _tasks("Buy groceries", "Call mom")
    res = match("groceries", tasks)
    assert [m.task.title for m in res] == ["Buy groceries"]
    assert res[0].score == pytest.approx(0.8)
    assert res[0].match_type == MatchType.PARTIAL

    res = match("please call mom tonight", _tasks("Call mom"))
    assert res and res[0].match_type == MatchType.PARTIAL


def test_word_overlap_is_fuzzy_and_scaled() -> None:
    res = match("team sync notes", _tasks("Notes from team sync"))
    assert len(res) == 1
    assert res[0].match_type == MatchType.FUZZY
    assert res[0].score == pytest.approx(0.75 * 0.6)


def test_weak_overlap_is_below_threshold() -> None:
    assert match("weekly grocery run", _tasks("Monthly grocery budget review")) == []


def test_short_tokens_do_not_count() -> None:
    assert score_title("go to gym", "go to bed") is None


def test_ties_keep_store_order() -> None:
    tasks = _tasks("Meeting with Arjun", "Team meeting prep")
    res = match("meeting", tasks)
    assert [m.task.title for m in res] == ["Meeting with Arjun", "Team meeting prep"]

    res = match("meeting", list(reversed(tasks)))
    assert [m.task.title for m in res] == ["Team meeting prep", "Meeting with Arjun"]


def test_first_tier_only_unless_full_ranking() -> None:
    tasks = _tasks("Write report", "Write report summary", "Summary of weekly report")
    assert [m.task.title for m in match("write report", tasks)] == ["Write report"]

    ranked = match("write report", tasks, full_ranking=True)
    assert [m.match_type for m in ranked][:2] == [MatchType.EXACT, MatchType.PARTIAL]
    assert ranked[0].task.title == "Write report"


def test_number_reference_indexes_presented_ordering() -> None:
    done = Task(id="d", title="Old thing", status=TaskStatus.COMPLETED)
    a, b = _tasks("Buy milk", "Call mom")
    tasks = [done, a, b]
    presented = [a, b]

    assert match("2", tasks, numbered=presented)[0].task is b
    assert match("the second one", tasks, numbered=presented)[0].task is b
    assert match("number 1", tasks, numbered=presented)[0].task is a


def test_number_reference_beats_text() -> None:
    tasks = _tasks("Buy milk", "Call mom")
    res = match("call mom 1", tasks)
    assert [m.task.title for m in res] == ["Buy milk"]
    assert res[0].score == 1.0


@pytest.mark.parametrize("query", ["0", "3", "-1", "fifth"])
def test_out_of_range_number_is_no_match(query: str) -> None:
    assert match(query, _tasks("Buy milk", "Call mom")) == []


def test_empty_query_is_no_match() -> None:
    assert match("", _tasks("Buy milk")) == []
    assert match("   ", _tasks("Buy milk")) == []


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2", 2),
        ("task 2nd", 2),
        ("number 10", 10),
        ("the third task", 3),
        ("first", 1),
        ("buy milk", None),
        ("", None),
        ("version 2.5", None),
        ("2.", 2),
        ("the 3rd.", 3),
    ],
)
def test_find_number_reference(text: str, expected: int | None) -> None:
    assert find_number_reference(text) == expected


def test_title_filler_words_are_kept() -> None:
    tasks = _tasks("Buy milk", "Buy the milk")
    ranked = match("buy milk", tasks, full_ranking=True)
    assert [m.task.title for m in ranked] == ["Buy milk", "Buy the milk"]
    assert [m.score for m in ranked] == [1.0, pytest.approx(2 / 3 * 0.6)]
    assert ranked[1].match_type == MatchType.FUZZY


def test_query_filler_words_are_dropped() -> None:
    res = match("the milk one", _tasks("Buy milk", "Call mom"))
    assert [m.task.title for m in res] == ["Buy milk"]
    assert res[0].match_type == MatchType.PARTIAL
