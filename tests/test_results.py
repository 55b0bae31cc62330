# tests/test_results.py

from __future__ import annotations

from tasktalk.engine.dialogue import CommandEngine
from tasktalk.engine.results import CommandResult

from .fakes import FakeTaskRepo


def test_prompt_result_shape(engine: CommandEngine, repo: FakeTaskRepo) -> None:
    repo.seed("Meeting with Arjun")
    repo.seed("Team meeting prep")

    out = engine.process_command("delete meeting").to_dict()
    assert out["success"] is False
    assert out["action"] == "delete"
    assert out["requiresDisambiguation"] is True
    assert [t["title"] for t in out["candidateTasks"]] == ["Meeting with Arjun", "Team meeting prep"]
    assert "taskAffected" not in out

    out = engine.process_command("1").to_dict()
    assert out["requiresConfirmation"] is True
    assert [t["title"] for t in out["candidateTasks"]] == ["Meeting with Arjun"]


def test_success_result_shape(engine: CommandEngine, repo: FakeTaskRepo) -> None:
    repo.seed("Buy milk")
    res = engine.process_command("mark buy milk as done")
    res.confidence = 0.9

    out = res.to_dict()
    assert out["success"] is True
    assert out["taskAffected"]["title"] == "Buy milk"
    assert out["taskAffected"]["status"] == "completed"
    assert out["confidence"] == 0.9
    assert "requiresConfirmation" not in out
    assert "cancelled" not in out


def test_minimal_result_shape() -> None:
    res = CommandResult(success=True, message="Action cancelled.", cancelled=True, spoken_reply="Okay.")
    assert res.to_dict() == {
        "success": True,
        "message": "Action cancelled.",
        "spokenReply": "Okay.",
        "cancelled": True,
    }
    assert res.reply_text == "Okay."
