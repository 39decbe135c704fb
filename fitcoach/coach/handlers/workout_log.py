"""Strength-set logging and session switching.

``WorkoutLogHandler`` is the logging state machine:

    no active workout -> ask to start one
    no exercise       -> "What exercise are you logging?"
    no reps           -> "{exercise} - how many reps?"
    otherwise         -> set written, session advanced

Set numbering and the PR check run inside the session transaction, and the
PR compare-and-write additionally holds ``pr:{user}:{exercise}`` so two
sessions of the same user cannot both beat the same stale maximum.
"""

import re
from typing import Optional

import structlog

from ...classifier.models import ClassificationResult, Intent
from ...storage.models import Exercise, LoggedSet
from ..models import CoachResponse, UserContext, WorkoutLogged
from .base import BaseHandler, HandlerDeps, format_number
from .lookup import resolve_exercise

logger = structlog.get_logger()

SAME_WEIGHT_PATTERN = re.compile(r"\bsame\b", re.IGNORECASE)

NO_WORKOUT_MESSAGE = "You don't have an active workout. Want me to start one for you?"

CONFIRMATION_TEMPLATES = (
    "Got it! {exercise}: {weight}{reps}. Set {set_number} ✓",
    "Logged! {exercise} - {weight}{reps} reps. Set {set_number} done!",
    "{exercise}: {weight}{reps} ✓ (Set {set_number})",
)
PR_TEMPLATES = (
    "🎉 PR! {exercise}: {weight}{reps} reps! Set {set_number} - incredible!",
    "🎉 New PR on {exercise}! {weight}{reps} reps. Set {set_number} - huge!",
)


def estimate_one_rep_max(weight: Optional[float], reps: int) -> Optional[float]:
    """Epley estimate: ``weight * (1 + reps / 30)``."""
    if not weight:
        return None
    return round(weight * (1 + reps / 30), 2)


def is_personal_record(estimated_1rm: Optional[float], prior_max: Optional[float]) -> bool:
    """Strictly greater than the prior maximum.

    With no history there is nothing to beat; the first set sets the baseline.
    """
    if estimated_1rm is None or prior_max is None:
        return False
    return estimated_1rm > prior_max


def no_workout_response(intent: Intent) -> CoachResponse:
    return CoachResponse(
        message=NO_WORKOUT_MESSAGE,
        intent=intent,
        needs_confirmation=True,
        confirmation_data={"action": "start_workout"},
    )


def not_found_response(name: str, intent: Intent) -> CoachResponse:
    return CoachResponse(
        message=f'I couldn\'t find "{name}". Did you mean something else?',
        intent=intent,
        needs_confirmation=True,
        confirmation_data={"action": "clarify_exercise", "query": name},
    )


class WorkoutLogHandler(BaseHandler):
    """Log a strength set against the active workout."""

    name = "workout_log"
    intents = (Intent.WORKOUT_LOG,)

    async def handle(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> CoachResponse:
        extracted = classification.extracted_data
        target = context.active_workout_id
        if not target:
            return no_workout_response(Intent.WORKOUT_LOG)

        matched: Optional[Exercise] = None
        if extracted.exercise:
            matched = await resolve_exercise(deps.store, extracted.exercise)
            if not matched:
                return not_found_response(extracted.exercise, Intent.WORKOUT_LOG)

        async with deps.sessions.transaction(context.user_id, target) as state:
            if matched and matched.id != state.current_exercise_id:
                state.switch_exercise(matched.id, matched.name)
            elif not state.current_exercise_id and context.current_exercise_id:
                known = await deps.store.get_exercise(context.current_exercise_id)
                if known:
                    state.switch_exercise(known.id, known.name)

            exercise_id = state.current_exercise_id
            exercise_name = state.current_exercise or "That exercise"
            if not exercise_id:
                return CoachResponse(
                    message="What exercise are you logging?",
                    intent=Intent.WORKOUT_LOG,
                )

            weight = extracted.weight
            weight_unit = extracted.weight_unit or context.preferred_weight_unit
            if weight is None and SAME_WEIGHT_PATTERN.search(message):
                last_weight = state.last_weight if state.last_weight is not None else context.last_weight
                if last_weight is not None:
                    weight = last_weight
                    weight_unit = state.last_weight_unit or context.last_weight_unit or weight_unit

            reps = extracted.reps
            if not reps:
                return CoachResponse(
                    message=f"{exercise_name} - how many reps?",
                    intent=Intent.WORKOUT_LOG,
                )

            async with deps.locks.hold(f"pr:{context.user_id}:{exercise_id}"):
                set_number = state.set_count + 1
                estimated_1rm = estimate_one_rep_max(weight, reps)
                prior_max = await deps.store.max_estimated_1rm(context.user_id, exercise_id)
                is_pr = is_personal_record(estimated_1rm, prior_max)

                await deps.store.insert_set(
                    LoggedSet(
                        workout_id=target,
                        exercise_id=exercise_id,
                        user_id=context.user_id,
                        set_number=set_number,
                        reps=reps,
                        weight=weight,
                        weight_unit=weight_unit,
                        rpe=extracted.rpe,
                        estimated_1rm=estimated_1rm,
                        is_pr=is_pr,
                        transcript=message,
                        confidence=classification.confidence,
                    )
                )

            state.set_count = set_number
            if weight is not None:
                state.last_weight = weight
                state.last_weight_unit = weight_unit

        logger.info(
            "Workout set logged",
            user_id=context.user_id,
            exercise_id=exercise_id,
            set_number=set_number,
            is_pr=is_pr,
        )
        return CoachResponse(
            message=self._confirmation(deps, exercise_name, weight, weight_unit, reps, set_number, is_pr),
            intent=Intent.WORKOUT_LOG,
            workout_logged=WorkoutLogged(
                exercise_id=exercise_id,
                exercise_name=exercise_name,
                reps=reps,
                set_number=set_number,
                is_pr=is_pr,
                weight=weight,
                weight_unit=weight_unit,
                estimated_1rm=estimated_1rm,
            ),
        )

    @staticmethod
    def _confirmation(
        deps: HandlerDeps,
        exercise: str,
        weight: Optional[float],
        weight_unit: str,
        reps: int,
        set_number: int,
        is_pr: bool,
    ) -> str:
        weight_text = f"{format_number(weight)}{weight_unit} × " if weight else ""
        template = deps.rng.choice(PR_TEMPLATES if is_pr else CONFIRMATION_TEMPLATES)
        return template.format(
            exercise=exercise, weight=weight_text, reps=reps, set_number=set_number
        )


class SetExerciseHandler(BaseHandler):
    """Switch the session's current exercise."""

    name = "set_exercise"
    intents = (Intent.SET_EXERCISE,)

    async def handle(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> CoachResponse:
        target = context.active_workout_id
        if not target:
            return no_workout_response(Intent.SET_EXERCISE)

        name = classification.extracted_data.exercise
        if not name:
            return CoachResponse(
                message="Which exercise are you moving to?",
                intent=Intent.SET_EXERCISE,
            )

        exercise = await resolve_exercise(deps.store, name)
        if not exercise:
            return not_found_response(name, Intent.SET_EXERCISE)

        latest = await deps.store.latest_set(context.user_id, exercise.id)
        async with deps.sessions.transaction(context.user_id, target) as state:
            state.switch_exercise(exercise.id, exercise.name)
            if latest and latest.weight is not None:
                state.last_weight = latest.weight
                state.last_weight_unit = latest.weight_unit

        logger.info("Current exercise set", user_id=context.user_id, exercise_id=exercise.id)
        if latest and latest.weight is not None:
            message_text = (
                f"Switched to {exercise.name}. Last time you did "
                f"{format_number(latest.weight)}{latest.weight_unit} for {latest.reps}."
            )
        else:
            message_text = f"Switched to {exercise.name}. Log your first set when you're ready."
        return CoachResponse(message=message_text, intent=Intent.SET_EXERCISE)


class ClearSessionHandler(BaseHandler):
    """Drop the logging session for the active workout."""

    name = "clear_session"
    intents = (Intent.CLEAR_SESSION,)

    async def handle(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> CoachResponse:
        if not context.active_workout_id:
            return CoachResponse(
                message="There's no active workout session to clear.",
                intent=Intent.CLEAR_SESSION,
            )

        await deps.sessions.clear(context.user_id, context.active_workout_id)
        return CoachResponse(
            message="Session cleared. Set numbering starts fresh with your next exercise.",
            intent=Intent.CLEAR_SESSION,
        )
