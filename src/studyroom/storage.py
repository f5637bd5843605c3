"""Volatile, process-local storage for goals and study sessions."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from .schema import (
    INSERT_GOAL_SCHEMA,
    INSERT_SESSION_SCHEMA,
    UPDATE_GOAL_SCHEMA,
    Goal,
    StudySession,
    validate,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemStorage:
    """Keep goals and sessions in dictionaries guarded by one lock.

    Payloads are validated against the JSON schemas in :mod:`studyroom.schema`;
    invalid data raises :class:`~studyroom.errors.ValidationError`.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._goals: dict[str, Goal] = {}
        self._sessions: dict[str, StudySession] = {}
        self._lock = threading.Lock()
        self._clock = clock

    # --- Goals ---------------------------------------------------------
    def get_goals(self) -> list[Goal]:
        with self._lock:
            return sorted(self._goals.values(), key=lambda goal: goal.order)

    def get_goal(self, goal_id: str) -> Goal | None:
        with self._lock:
            return self._goals.get(goal_id)

    def create_goal(self, data: Mapping[str, Any]) -> Goal:
        values = validate(data, INSERT_GOAL_SCHEMA, "Invalid goal data")
        goal = Goal(
            id=str(uuid.uuid4()),
            text=values["text"],
            order=values["order"],
            completed=values.get("completed", False),
        )
        with self._lock:
            self._goals[goal.id] = goal
        logger.debug("Created goal %s", goal.id)
        return goal

    def update_goal(self, goal_id: str, updates: Mapping[str, Any]) -> Goal | None:
        values = validate(updates, UPDATE_GOAL_SCHEMA, "Invalid goal data")
        values.pop("id", None)
        with self._lock:
            goal = self._goals.get(goal_id)
            if goal is None:
                return None
            updated = replace(goal, **values)
            self._goals[goal_id] = updated
            return updated

    def delete_goal(self, goal_id: str) -> bool:
        with self._lock:
            return self._goals.pop(goal_id, None) is not None

    # --- Sessions ------------------------------------------------------
    def get_sessions(self) -> list[StudySession]:
        with self._lock:
            return sorted(self._sessions.values(), key=lambda item: item.completed_at, reverse=True)

    def create_session(self, data: Mapping[str, Any]) -> StudySession:
        values = validate(data, INSERT_SESSION_SCHEMA, "Invalid session data")
        session = StudySession(
            id=str(uuid.uuid4()),
            duration=values["duration"],
            background=values["background"],
            soundscape=values["soundscape"],
            completed_at=self._clock(),
        )
        with self._lock:
            self._sessions[session.id] = session
        logger.info("Recorded %d minute study session", session.duration)
        return session


__all__ = ["MemStorage"]
