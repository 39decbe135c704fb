"""Pydantic records for the persistence store."""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetimes(data: Dict[str, Any], *fields: str) -> None:
    for name in fields:
        value = data.get(name)
        if isinstance(value, str) and value:
            data[name] = datetime.fromisoformat(value)


class Exercise(BaseModel):
    """Exercise catalog entry."""

    id: str = Field(default_factory=_new_id)
    name: str
    synonyms: List[str] = Field(default_factory=list)
    primary_muscle: Optional[str] = None
    equipment: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "Exercise":
        data = dict(row)
        raw = data.get("synonyms")
        data["synonyms"] = json.loads(raw) if raw else []
        return cls(**data)


class LoggedSet(BaseModel):
    """A strength set written by the workout-log handler."""

    id: str = Field(default_factory=_new_id)
    workout_id: str
    exercise_id: str
    user_id: str
    set_number: int
    reps: int
    weight: Optional[float] = None
    weight_unit: str = "lbs"
    rpe: Optional[float] = None
    estimated_1rm: Optional[float] = None
    is_pr: bool = False
    logging_method: str = "voice"
    transcript: Optional[str] = None
    confidence: Optional[float] = None
    created_at: datetime = Field(default_factory=_now)

    @classmethod
    def from_row(cls, row: Any) -> "LoggedSet":
        data = dict(row)
        data["is_pr"] = bool(data.get("is_pr"))
        _parse_datetimes(data, "created_at")
        return cls(**data)


class Wod(BaseModel):
    """Named benchmark workout."""

    id: str = Field(default_factory=_new_id)
    name: str
    description: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "Wod":
        return cls(**dict(row))


class WodLog(BaseModel):
    """One benchmark workout result."""

    id: str = Field(default_factory=_new_id)
    user_id: str
    wod_id: str
    result_time_seconds: Optional[int] = None
    result_rounds: Optional[int] = None
    result_reps: Optional[int] = None
    raw_input: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)


class WodBenchmark(BaseModel):
    """Best time per user and benchmark. Lower is better."""

    id: str = Field(default_factory=_new_id)
    user_id: str
    wod_id: str
    wod_log_id: Optional[str] = None
    best_time_seconds: Optional[int] = None
    previous_best_time_seconds: Optional[int] = None
    improvement_seconds: Optional[int] = None
    achieved_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Any) -> "WodBenchmark":
        data = dict(row)
        _parse_datetimes(data, "achieved_at", "updated_at")
        return cls(**data)


class ProgramQuestionnaire(BaseModel):
    """Intake answers used to generate a multi-week program."""

    id: str = Field(default_factory=_new_id)
    user_id: str
    data: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_now)
    completed_at: Optional[datetime] = None

    @property
    def is_complete(self) -> bool:
        return self.completed_at is not None

    @classmethod
    def from_row(cls, row: Any) -> "ProgramQuestionnaire":
        data = dict(row)
        raw = data.get("data")
        data["data"] = json.loads(raw) if raw else {}
        _parse_datetimes(data, "created_at", "completed_at")
        return cls(**data)


class TrainingProgram(BaseModel):
    """A stored multi-week program."""

    id: str = Field(default_factory=_new_id)
    user_id: str
    name: str
    status: str = "draft"  # draft | active | paused | completed
    program_type: Optional[str] = None
    primary_goal: Optional[str] = None
    duration_weeks: int
    days_per_week: int
    current_week: int = 1
    plan: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_now)

    @classmethod
    def from_row(cls, row: Any) -> "TrainingProgram":
        data = dict(row)
        raw = data.get("plan")
        data["plan"] = json.loads(raw) if raw else {}
        _parse_datetimes(data, "created_at")
        return cls(**data)
