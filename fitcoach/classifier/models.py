"""Classification data model shared by the pattern and fallback classifiers."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Intent(str, Enum):
    """Closed set of user intents."""

    WORKOUT_LOG = "workout_log"
    SET_EXERCISE = "set_exercise"
    CLEAR_SESSION = "clear_session"
    EXERCISE_QUESTION = "exercise_question"
    EXERCISE_SWAP = "exercise_swap"
    PROGRAM_REQUEST = "program_request"
    FULL_PROGRAM = "full_program"
    PROGRAM_QUESTION = "program_question"
    NUTRITION = "nutrition"
    RECOVERY = "recovery"
    RUNNING = "running"
    RUNNING_PROGRAM = "running_program"
    WOD_LOG = "wod_log"
    GENERAL_FITNESS = "general_fitness"
    GREETING = "greeting"
    OFF_TOPIC = "off_topic"


INTENT_DESCRIPTIONS: dict[Intent, str] = {
    Intent.WORKOUT_LOG: 'Logging a set (exercise, weight, reps) - "bench 225 for 8", "just did 10 pullups"',
    Intent.SET_EXERCISE: 'Switching the current exercise - "moving on to squats", "next exercise is rows"',
    Intent.CLEAR_SESSION: 'Ending or resetting the logging session - "end my workout session"',
    Intent.EXERCISE_QUESTION: 'How to do an exercise - "how do I deadlift?", "what muscles does bench work?"',
    Intent.EXERCISE_SWAP: 'Wants an alternative exercise - "what can I do instead of squats?"',
    Intent.PROGRAM_REQUEST: 'Wants a SINGLE workout - "create a push day", "what should I do for legs today?"',
    Intent.FULL_PROGRAM: 'Wants a MULTI-WEEK program - "build me a 12 week training program"',
    Intent.PROGRAM_QUESTION: 'Asking about their current program - "what\'s next?", "am I on track?"',
    Intent.NUTRITION: 'Food/diet questions - "how much protein?", "what should I eat?"',
    Intent.RECOVERY: 'Pain, soreness, rest - "my back hurts", "should I rest today?"',
    Intent.RUNNING: 'Quick cardio/running question - "what pace should I run?"',
    Intent.RUNNING_PROGRAM: 'Wants a MULTI-WEEK running plan - "create me a 5k training plan"',
    Intent.WOD_LOG: 'CrossFit benchmark result - "Fran 3:45", "finished Murph in 42 minutes"',
    Intent.GENERAL_FITNESS: 'Other fitness topics - "how do I get stronger?"',
    Intent.GREETING: "Hello, hi, hey",
    Intent.OFF_TOPIC: "Non-fitness topics (redirect politely)",
}


WeightUnit = Literal["lbs", "kg"]


class ExtractedData(BaseModel):
    """Entities pulled out of a message. Every field is independently optional.

    Field aliases match the camelCase keys the completion service is asked to
    emit, so fallback output can be validated directly.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    exercise: Optional[str] = None
    body_part: Optional[str] = Field(None, alias="bodyPart")
    muscle_group: Optional[str] = Field(None, alias="muscleGroup")
    weight: Optional[float] = None
    weight_unit: Optional[WeightUnit] = Field(None, alias="weightUnit")
    reps: Optional[int] = None
    sets: Optional[int] = None
    rpe: Optional[float] = None
    wod_name: Optional[str] = Field(None, alias="wodName")
    wod_time: Optional[int] = Field(None, alias="wodTime")
    wod_rounds: Optional[int] = Field(None, alias="wodRounds")
    wod_reps: Optional[int] = Field(None, alias="wodReps")

    @field_validator("weight_unit", mode="before")
    @classmethod
    def _normalize_unit(cls, value: object) -> Optional[str]:
        if value is None or value == "":
            return None
        text = str(value).lower()
        return "kg" if text.startswith("k") else "lbs"


@dataclass
class ClassificationResult:
    """Result of intent classification, identical in shape for both classifiers."""

    intent: Intent
    confidence: float  # 0.0-1.0, fixed per rule
    extracted_data: ExtractedData = field(default_factory=ExtractedData)
    used_pattern: bool = False
    pattern_name: Optional[str] = None


@dataclass
class Matched:
    """The pattern stage is confident enough to skip the fallback."""

    result: ClassificationResult


@dataclass
class NeedsEscalation:
    """The pattern stage is inconclusive; ``best_guess`` is a weak match if any."""

    best_guess: Optional[ClassificationResult] = None


PatternOutcome = Union[Matched, NeedsEscalation]
