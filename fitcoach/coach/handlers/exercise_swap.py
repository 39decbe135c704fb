"""Exercise substitutions."""

import structlog

from ...classifier.models import ClassificationResult, Intent
from ..models import CoachResponse, Substitute, UserContext
from .base import BaseHandler, HandlerDeps
from .lookup import resolve_exercise

logger = structlog.get_logger()

MAX_SUBSTITUTES = 3


class ExerciseSwapHandler(BaseHandler):
    """Offer exercises that train the same primary muscle."""

    name = "exercise_swap"
    intents = (Intent.EXERCISE_SWAP,)

    async def handle(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> CoachResponse:
        extracted = classification.extracted_data
        exercise_name = extracted.exercise
        if not exercise_name and context.active_workout_id:
            state = await deps.sessions.get(context.user_id, context.active_workout_id)
            exercise_name = state.current_exercise
        exercise_name = exercise_name or context.current_exercise

        if not exercise_name:
            return CoachResponse(
                message="Which exercise do you want to swap out?",
                intent=Intent.EXERCISE_SWAP,
            )

        exercise = await resolve_exercise(deps.store, exercise_name)
        if not exercise:
            return CoachResponse(
                message=f'I couldn\'t find "{exercise_name}". Can you be more specific?',
                intent=Intent.EXERCISE_SWAP,
            )

        candidates = (await deps.store.find_substitutes(exercise.id))[:MAX_SUBSTITUTES]
        if not candidates:
            return CoachResponse(
                message=f"I don't have alternatives for {exercise.name} yet.",
                intent=Intent.EXERCISE_SWAP,
            )

        if extracted.body_part:
            reason = f"to avoid stress on your {extracted.body_part}"
        elif context.injuries:
            reason = f"considering your {', '.join(context.injuries)}"
        else:
            reason = "based on similar movement pattern"

        substitutes = [
            Substitute(
                exercise_id=candidate.id,
                name=candidate.name,
                reason=f"Also trains {candidate.primary_muscle}" if candidate.primary_muscle
                else "Similar movement pattern",
            )
            for candidate in candidates
        ]
        listing = "\n".join(f"{i}. {s.name}" for i, s in enumerate(substitutes, start=1))
        logger.info("Substitutes offered", exercise_id=exercise.id, count=len(substitutes))

        return CoachResponse(
            message=(
                f"Here are some alternatives to {exercise.name} {reason}:\n\n"
                f"{listing}\n\nWant me to use one of these instead?"
            ),
            intent=Intent.EXERCISE_SWAP,
            substitutes=substitutes,
        )
