"""Full training program and running program requests."""

import asyncio
import re
from typing import Any, Optional

import structlog

from ...classifier.models import ClassificationResult, Intent
from ...exceptions import FitCoachError
from ...storage.models import TrainingProgram
from ..models import CoachResponse, ProgramGenerated, QuestionNeeded, UserContext
from .base import BaseHandler, HandlerDeps

logger = structlog.get_logger()

RACE_DISTANCE_PATTERN = re.compile(r"couch.?to.?5k|half.?marathon|marathon|10k|5k", re.IGNORECASE)

FULL_PROGRAM_INTRO = """\
I'd love to create a personalized training program for you!

To build the best program, I need to know a few things about you. I'll \
generate a multi-week structured plan based on your goals.

Let's start with the basics - what type of training are you most interested in?

1. **Strength training** - Building muscle, getting stronger
2. **Running/Cardio** - 5K, 10K, marathon training
3. **Hybrid** - Both strength and running
4. **CrossFit** - High-intensity functional fitness

Just reply with your choice (or the number)!"""

RUNNING_PROGRAM_INTRO = """\
{opening}

To create the perfect running program, I need a few more details:

1. **Current fitness level**: Are you a beginner, intermediate, or advanced runner?
2. **Weekly mileage**: How many miles/km do you currently run per week?
3. **Goal**: Do you have a target race date or finish time?

Let's start - what's your current running experience level?"""

GENERATION_FAILED_MESSAGE = (
    "I had trouble generating your program. Let me try a simpler approach - "
    "what's your main goal? (e.g., build muscle, lose fat, run a 5K)"
)


def detect_race_distance(message: str) -> Optional[str]:
    """"half marathon" -> "halfmarathon", "couch to 5k" -> "couchto5k"."""
    match = RACE_DISTANCE_PATTERN.search(message)
    return re.sub(r"\s", "", match.group(0).lower()) if match else None


class ProgramHandler(BaseHandler):
    """Questionnaire-gated program generation."""

    name = "program"
    intents = (Intent.FULL_PROGRAM, Intent.RUNNING_PROGRAM)

    async def handle(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> CoachResponse:
        intent = classification.intent
        questionnaire = await deps.store.latest_questionnaire(context.user_id)
        completed = questionnaire if questionnaire and questionnaire.is_complete else None

        if intent == Intent.RUNNING_PROGRAM:
            distance = detect_race_distance(message)
            if not completed:
                return self._running_questions(distance)
            answers = {
                **completed.data,
                "trainingType": "running_only",
                "targetRaceDistance": distance or completed.data.get("targetRaceDistance"),
            }
            return await self._generate(answers, intent, context, deps)

        if not completed:
            return CoachResponse(
                message=FULL_PROGRAM_INTRO,
                intent=intent,
                questions_needed=[
                    QuestionNeeded(
                        field="trainingType",
                        question="What type of training are you interested in?",
                        options=["strength_only", "running_only", "hybrid", "crossfit"],
                    )
                ],
                needs_confirmation=True,
                confirmation_data={"action": "start_questionnaire", "step": "training_type"},
            )

        active = await deps.store.active_program(context.user_id)
        if active:
            return CoachResponse(
                message=(
                    f'You already have an active program: "{active.name}" '
                    f"(Week {active.current_week}/{active.duration_weeks}). Would you like to:\n\n"
                    "1. Continue with your current program\n"
                    "2. Pause it and create a new one\n"
                    "3. See today's workout\n\n"
                    "What would you like to do?"
                ),
                intent=intent,
                needs_confirmation=True,
                confirmation_data={
                    "action": "program_exists",
                    "program_id": active.id,
                    "program_name": active.name,
                },
            )

        return await self._generate(dict(completed.data), intent, context, deps)

    @staticmethod
    def _running_questions(distance: Optional[str]) -> CoachResponse:
        opening = (
            f"Great! A {distance} plan it is!" if distance else "What distance are you training for?"
        )
        return CoachResponse(
            message=RUNNING_PROGRAM_INTRO.format(opening=opening),
            intent=Intent.RUNNING_PROGRAM,
            questions_needed=[
                QuestionNeeded(
                    field="experienceLevel",
                    question="What is your running experience level?",
                    options=["beginner", "intermediate", "advanced"],
                ),
                QuestionNeeded(field="weeklyMileage", question="How many miles/km do you run per week?"),
                QuestionNeeded(field="targetRaceDate", question="When is your target race? (optional)"),
            ],
            needs_confirmation=True,
            confirmation_data={
                "action": "start_running_questionnaire",
                "target_distance": distance,
                "step": "experience_level",
            },
        )

    async def _generate(
        self,
        answers: dict[str, Any],
        intent: Intent,
        context: UserContext,
        deps: HandlerDeps,
    ) -> CoachResponse:
        if deps.program_generator is None:
            logger.warning("No program generator configured")
            return CoachResponse(message=GENERATION_FAILED_MESSAGE, intent=intent)

        try:
            generated = await deps.program_generator.generate(answers, context)
            program = TrainingProgram(
                user_id=context.user_id,
                name=generated.name,
                program_type=generated.program_type,
                primary_goal=generated.primary_goal,
                duration_weeks=generated.duration_weeks,
                days_per_week=generated.days_per_week,
                plan={"questionnaire": answers, "weeks": generated.weeks},
            )
            program_id = await deps.store.save_program(program)
        except (FitCoachError, ValueError, asyncio.TimeoutError) as exc:
            logger.error("Program generation failed", user_id=context.user_id, error=str(exc))
            return CoachResponse(message=GENERATION_FAILED_MESSAGE, intent=intent)

        return CoachResponse(
            message=(
                f"🎉 Your personalized {generated.duration_weeks}-week **{generated.name}** "
                "has been created!\n\n"
                "**Program Overview:**\n"
                f"- Type: {generated.program_type}\n"
                f"- Duration: {generated.duration_weeks} weeks\n"
                f"- Training days: {generated.days_per_week} per week\n"
                f"- Goal: {generated.primary_goal}\n\n"
                "The program is ready! Would you like me to:\n"
                "1. **Activate it** - Start the program\n"
                "2. **Review it** - See the full week-by-week breakdown\n"
                "3. **Adjust it** - Make changes before starting\n\n"
                "Just let me know!"
            ),
            intent=intent,
            program_generated=ProgramGenerated(
                program_id=program_id,
                name=generated.name,
                duration_weeks=generated.duration_weeks,
                days_per_week=generated.days_per_week,
                program_type=generated.program_type,
            ),
            needs_confirmation=True,
            confirmation_data={"action": "program_generated", "program_id": program_id},
        )
