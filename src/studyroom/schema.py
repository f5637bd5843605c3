"""Record types for goals and study sessions plus their JSON schemas."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Mapping

from jsonschema import Draft202012Validator

from .errors import ValidationError

INSERT_GOAL_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "text": {"type": "string", "minLength": 1},
        "completed": {"type": "boolean"},
        "order": {"type": "integer"},
    },
    "required": ["text", "order"],
    "additionalProperties": False,
}

UPDATE_GOAL_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "text": {"type": "string", "minLength": 1},
        "completed": {"type": "boolean"},
        "order": {"type": "integer"},
    },
    "additionalProperties": False,
}

INSERT_SESSION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "duration": {"type": "integer", "minimum": 1},
        "background": {"type": "string"},
        "soundscape": {"type": "string"},
    },
    "required": ["duration", "background", "soundscape"],
    "additionalProperties": False,
}

_VALIDATORS = {
    id(schema): Draft202012Validator(schema)
    for schema in (INSERT_GOAL_SCHEMA, UPDATE_GOAL_SCHEMA, INSERT_SESSION_SCHEMA)
}


def validate(payload: Any, schema: Mapping[str, Any], message: str) -> dict[str, Any]:
    """Validate ``payload`` and return a copy, or raise :class:`ValidationError`.

    ``details`` lists every problem as ``{"path": [...], "message": "..."}``.
    """

    validator = _VALIDATORS.get(id(schema)) or Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(payload), key=lambda err: list(err.absolute_path))
    if errors:
        details = [
            {"path": [str(part) for part in err.absolute_path], "message": err.message}
            for err in errors
        ]
        raise ValidationError(message, details)
    return dict(payload)


@dataclass(slots=True)
class Goal:
    id: str
    text: str
    order: int
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class StudySession:
    id: str
    duration: int
    background: str
    soundscape: str
    completed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "duration": self.duration,
            "background": self.background,
            "soundscape": self.soundscape,
            "completedAt": self.completed_at.isoformat(),
        }


__all__ = [
    "Goal",
    "StudySession",
    "INSERT_GOAL_SCHEMA",
    "UPDATE_GOAL_SCHEMA",
    "INSERT_SESSION_SCHEMA",
    "validate",
]
