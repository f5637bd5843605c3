from datetime import datetime, timedelta, timezone

import pytest

from studyroom.errors import ValidationError
from studyroom.storage import MemStorage


def test_goals_are_sorted_by_order():
    storage = MemStorage()
    storage.create_goal({"text": "Review notes", "order": 2})
    storage.create_goal({"text": "Read chapter 4", "order": 0})
    storage.create_goal({"text": "Flashcards", "order": 1, "completed": True})

    goals = storage.get_goals()

    assert [goal.text for goal in goals] == ["Read chapter 4", "Flashcards", "Review notes"]
    assert goals[0].completed is False
    assert goals[1].completed is True


def test_create_goal_assigns_unique_ids():
    storage = MemStorage()
    first = storage.create_goal({"text": "a", "order": 0})
    second = storage.create_goal({"text": "b", "order": 1})

    assert first.id != second.id
    assert storage.get_goal(first.id) == first


@pytest.mark.parametrize(
    "payload",
    [
        {"order": 0},
        {"text": "", "order": 0},
        {"text": "ok", "order": "first"},
        {"text": "ok", "order": 0, "completed": "yes"},
        {"text": "ok", "order": 0, "priority": 5},
        ["not", "an", "object"],
    ],
)
def test_create_goal_rejects_invalid_payloads(payload):
    storage = MemStorage()

    with pytest.raises(ValidationError) as excinfo:
        storage.create_goal(payload)

    assert str(excinfo.value) == "Invalid goal data"
    assert excinfo.value.details
    assert storage.get_goals() == []


def test_update_goal_merges_fields_and_keeps_id():
    storage = MemStorage()
    goal = storage.create_goal({"text": "Essay outline", "order": 0})

    updated = storage.update_goal(goal.id, {"completed": True, "id": "something-else"})

    assert updated.id == goal.id
    assert updated.completed is True
    assert updated.text == "Essay outline"
    assert storage.get_goal(goal.id).completed is True


def test_update_missing_goal_returns_none():
    storage = MemStorage()
    assert storage.update_goal("missing", {"completed": True}) is None


def test_delete_goal():
    storage = MemStorage()
    goal = storage.create_goal({"text": "Tidy desk", "order": 0})

    assert storage.delete_goal(goal.id) is True
    assert storage.delete_goal(goal.id) is False
    assert storage.get_goals() == []


def test_sessions_are_newest_first():
    start = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
    stamps = iter([start, start + timedelta(hours=1), start + timedelta(hours=2)])
    storage = MemStorage(clock=lambda: next(stamps))

    for minutes in (25, 50, 15):
        storage.create_session({"duration": minutes, "background": "library", "soundscape": "rain"})

    sessions = storage.get_sessions()

    assert [session.duration for session in sessions] == [15, 50, 25]
    assert sessions[0].to_dict()["completedAt"] == "2024-03-01T11:00:00+00:00"


def test_create_session_rejects_non_positive_duration():
    storage = MemStorage()

    with pytest.raises(ValidationError) as excinfo:
        storage.create_session({"duration": 0, "background": "library", "soundscape": "rain"})

    assert str(excinfo.value) == "Invalid session data"
    assert excinfo.value.details[0]["path"] == ["duration"]
