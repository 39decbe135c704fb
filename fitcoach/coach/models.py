"""Coach request/response types."""

from dataclasses import dataclass, field
from typing import Any, Optional

from ..classifier.models import Intent


@dataclass(frozen=True)
class UserContext:
    """Profile and session context for one turn."""

    user_id: str
    name: Optional[str] = None
    experience_level: Optional[str] = None
    goals: list[str] = field(default_factory=list)
    injuries: list[str] = field(default_factory=list)
    preferred_equipment: list[str] = field(default_factory=list)
    preferred_weight_unit: str = "lbs"
    recent_prs: list[dict[str, Any]] = field(default_factory=list)
    conversation_history: list[dict[str, str]] = field(default_factory=list)

    # Active log target and caller-side session hints
    active_workout_id: Optional[str] = None
    current_exercise: Optional[str] = None
    current_exercise_id: Optional[str] = None
    last_weight: Optional[float] = None
    last_weight_unit: Optional[str] = None

    def session_summary(self) -> dict[str, Any]:
        """Session fields consumed by the classifier prompt."""
        return {
            "current_exercise": self.current_exercise,
            "last_weight": self.last_weight,
            "last_weight_unit": self.last_weight_unit,
            "active_workout_id": self.active_workout_id,
        }


@dataclass
class WorkoutLogged:
    exercise_id: str
    exercise_name: str
    reps: int
    set_number: int
    is_pr: bool
    weight: Optional[float] = None
    weight_unit: Optional[str] = None
    estimated_1rm: Optional[float] = None


@dataclass
class WodLogged:
    wod_id: str
    wod_name: str
    log_id: str
    is_pr: bool
    time_seconds: Optional[int] = None
    rounds: Optional[int] = None
    reps: Optional[int] = None
    previous_best_seconds: Optional[int] = None
    improvement_seconds: Optional[int] = None


@dataclass
class Substitute:
    exercise_id: str
    name: str
    reason: str


@dataclass
class Source:
    title: str
    category: str


@dataclass
class FormTips:
    setup: list[str] = field(default_factory=list)
    execution: list[str] = field(default_factory=list)
    breathing: list[str] = field(default_factory=list)
    common_mistakes: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.setup or self.execution or self.breathing or self.common_mistakes)


@dataclass
class ProgramGenerated:
    program_id: str
    name: str
    duration_weeks: int
    days_per_week: int
    program_type: str


@dataclass
class QuestionNeeded:
    field: str
    question: str
    options: Optional[list[str]] = None


@dataclass
class CoachResponse:
    """Typed reply for a turn. Every path, including failures, produces one."""

    message: str
    intent: Intent
    workout_logged: Optional[WorkoutLogged] = None
    wod_logged: Optional[WodLogged] = None
    substitutes: Optional[list[Substitute]] = None
    sources: Optional[list[Source]] = None
    form_tips: Optional[FormTips] = None
    needs_confirmation: bool = False
    confirmation_data: Optional[dict[str, Any]] = None
    program_generated: Optional[ProgramGenerated] = None
    questions_needed: Optional[list[QuestionNeeded]] = None


@dataclass
class StreamChunk:
    """One item of a streamed reply: text ``chunk`` or the ``final`` response."""

    chunk: Optional[str] = None
    final: Optional[CoachResponse] = None
