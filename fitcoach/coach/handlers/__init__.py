"""Intent handlers."""

from .base import BaseHandler, HandlerDeps, IntentHandler
from .conversational import GreetingHandler, OffTopicHandler
from .exercise_swap import ExerciseSwapHandler
from .knowledge import ExerciseQuestionHandler, KnowledgeHandler, knowledge_handlers
from .program import ProgramHandler
from .wod_log import WodLogHandler
from .workout_log import ClearSessionHandler, SetExerciseHandler, WorkoutLogHandler


def default_handlers() -> list[IntentHandler]:
    """One handler per intent."""
    return [
        WorkoutLogHandler(),
        SetExerciseHandler(),
        ClearSessionHandler(),
        WodLogHandler(),
        ExerciseSwapHandler(),
        ProgramHandler(),
        GreetingHandler(),
        OffTopicHandler(),
        *knowledge_handlers(),
    ]


__all__ = [
    "BaseHandler",
    "ClearSessionHandler",
    "ExerciseQuestionHandler",
    "ExerciseSwapHandler",
    "GreetingHandler",
    "HandlerDeps",
    "IntentHandler",
    "KnowledgeHandler",
    "OffTopicHandler",
    "ProgramHandler",
    "SetExerciseHandler",
    "WodLogHandler",
    "WorkoutLogHandler",
    "default_handlers",
]
