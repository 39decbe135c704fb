"""Tests for the WOD, swap, knowledge, program and conversational handlers."""

import asyncio
from dataclasses import replace
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import FakeCompletion, make_doc

from fitcoach.classifier.models import ClassificationResult, ExtractedData, Intent
from fitcoach.coach.handlers import (
    ExerciseQuestionHandler,
    ExerciseSwapHandler,
    GreetingHandler,
    KnowledgeHandler,
    OffTopicHandler,
    ProgramHandler,
    WodLogHandler,
)
from fitcoach.coach.handlers.knowledge import APOLOGY_MESSAGE, extract_form_tips
from fitcoach.coach.handlers.program import GENERATION_FAILED_MESSAGE, detect_race_distance
from fitcoach.coach.handlers.wod_log import format_wod_time
from fitcoach.coach.program_generator import GeneratedProgram
from fitcoach.exceptions import CompletionError
from fitcoach.storage.models import ProgramQuestionnaire, TrainingProgram


def classified(intent, **fields) -> ClassificationResult:
    return ClassificationResult(
        intent=intent, confidence=0.85, extracted_data=ExtractedData(**fields), used_pattern=True
    )


class SlowCompletion(FakeCompletion):
    async def complete(self, system_prompt, user_prompt, temperature=0.7, max_tokens=500):
        await asyncio.sleep(1)
        return self.reply


class TestWodLogHandler:

    def test_format_wod_time(self):
        assert format_wod_time(225) == "3:45"
        assert format_wod_time(2520) == "42:00"
        assert format_wod_time(61) == "1:01"

    async def test_first_then_slower_then_faster(self, deps, context, store):
        handler = WodLogHandler()

        first = await handler.handle("Fran 3:45", classified(Intent.WOD_LOG, wod_name="fran", wod_time=225),
                                     context, deps)
        assert first.wod_logged.is_pr is True
        assert first.wod_logged.previous_best_seconds is None

        slower = await handler.handle("Fran 4:00", classified(Intent.WOD_LOG, wod_name="fran", wod_time=240),
                                      context, deps)
        assert slower.wod_logged.is_pr is False
        assert slower.message == "Fran logged: 4:00. Great work!"

        faster = await handler.handle("Fran 3:30", classified(Intent.WOD_LOG, wod_name="fran", wod_time=210),
                                      context, deps)
        assert faster.wod_logged.is_pr is True
        assert faster.wod_logged.previous_best_seconds == 225
        assert faster.wod_logged.improvement_seconds == 15
        assert "new PR" in faster.message

        benchmark = await store.get_wod_benchmark("user-1", "fran")
        assert benchmark.best_time_seconds == 210

    async def test_rounds_result_is_not_a_time_pr(self, deps, context):
        response = await WodLogHandler().handle(
            "cindy 20 rounds + 5", classified(Intent.WOD_LOG, wod_name="cindy", wod_rounds=20, wod_reps=5),
            context, deps,
        )
        assert response.wod_logged.is_pr is False
        assert "20 rounds + 5 reps" in response.message

    async def test_unknown_wod(self, deps, context):
        response = await WodLogHandler().handle(
            "Bubba 12:00", classified(Intent.WOD_LOG, wod_name="bubba", wod_time=720), context, deps
        )
        assert response.needs_confirmation is True
        assert response.confirmation_data["action"] == "custom_wod"
        assert response.wod_logged is None


class TestExerciseSwapHandler:

    async def test_substitutes_for_named_exercise(self, deps, context):
        response = await ExerciseSwapHandler().handle(
            "what can I do instead of bench, my shoulder hurts",
            classified(Intent.EXERCISE_SWAP, exercise="bench", body_part="shoulder"),
            context, deps,
        )
        assert 0 < len(response.substitutes) <= 3
        assert "bench-press" not in {s.exercise_id for s in response.substitutes}
        assert "to avoid stress on your shoulder" in response.message

    async def test_falls_back_to_session_exercise(self, deps, context):
        await deps.sessions.save(
            "user-1", "workout-1",
            (await deps.sessions.get("user-1", "workout-1")).model_copy(
                update={"current_exercise": "Squat", "current_exercise_id": "back-squat"}
            ),
        )
        response = await ExerciseSwapHandler().handle(
            "give me an alternative", classified(Intent.EXERCISE_SWAP), context, deps
        )
        assert "Squat" in response.message
        assert response.substitutes

    async def test_nothing_to_swap(self, deps, context):
        response = await ExerciseSwapHandler().handle(
            "swap it", classified(Intent.EXERCISE_SWAP), replace(context, active_workout_id=None), deps
        )
        assert response.substitutes is None
        assert "Which exercise" in response.message


class TestKnowledgeHandler:

    async def test_prompt_carries_retrieved_knowledge(self, deps, context, search, completion):
        search.results["nutrition"] = [make_doc("p1", 0.9, text="Aim for 0.7-1g protein per lb.", category="Protein")]
        completion.reply = "About 160g a day for you."

        response = await KnowledgeHandler("nutrition", (Intent.NUTRITION,)).handle(
            "how much protein should I eat?", classified(Intent.NUTRITION), context, deps
        )

        assert response.message == "About 160g a day for you."
        assert response.intent == Intent.NUTRITION
        prompt = completion.calls[0]["user_prompt"]
        assert "RELEVANT KNOWLEDGE" in prompt
        assert "Aim for 0.7-1g protein per lb." in prompt
        assert prompt.rstrip().endswith("USER: how much protein should I eat?")
        assert completion.calls[0]["max_tokens"] == 500

    async def test_completion_error_apologizes(self, deps, context):
        deps = replace(deps, completion=FakeCompletion(error=CompletionError("down")))
        response = await KnowledgeHandler("recovery", (Intent.RECOVERY,)).handle(
            "my knee hurts", classified(Intent.RECOVERY, body_part="knee"), context, deps
        )
        assert response.message == APOLOGY_MESSAGE

    async def test_timeout_apologizes(self, deps, context):
        deps = replace(deps, completion=SlowCompletion(), completion_timeout=0.01)
        response = await KnowledgeHandler("running", (Intent.RUNNING,)).handle(
            "what pace for a 5k?", classified(Intent.RUNNING), context, deps
        )
        assert response.message == APOLOGY_MESSAGE

    async def test_stream_chunks_then_final(self, deps, context, completion):
        completion.reply = "Keep your chest up"
        items = [
            item
            async for item in KnowledgeHandler("general", (Intent.GENERAL_FITNESS,)).stream(
                "how do I get stronger?", classified(Intent.GENERAL_FITNESS), context, deps
            )
        ]
        chunks = [item.chunk for item in items if item.chunk]
        assert len(chunks) == 4
        assert items[-1].final.message == "".join(chunks)
        assert all(item.final is None for item in items[:-1])

    async def test_stream_failure_ends_with_apology(self, deps, context):
        deps = replace(deps, completion=FakeCompletion(error=CompletionError("down")))
        items = [
            item
            async for item in KnowledgeHandler("general", (Intent.GENERAL_FITNESS,)).stream(
                "how do I get stronger?", classified(Intent.GENERAL_FITNESS), context, deps
            )
        ]
        assert len(items) == 1
        assert items[0].final.message == APOLOGY_MESSAGE


class TestFormTips:

    def test_extract_form_tips(self):
        tips = extract_form_tips(
            [
                make_doc("a", 0.9, text="Setup cue: feet shoulder width, brace hard."),
                make_doc("b", 0.8, text="Cue: knees out as you descend."),
                make_doc("c", 0.7, text="Common fault cue: heels lifting off the floor."),
                make_doc("d", 0.6, text="Exhale through the sticking point.", type="breathing"),
                make_doc("e", 0.5, text="Letting the bar drift forward.", type="commonMistakes"),
                make_doc("f", 0.4, text="Unrelated history of the lift."),
            ]
        )
        assert tips.setup == ["Setup cue: feet shoulder width, brace hard."]
        assert tips.execution == ["Cue: knees out as you descend."]
        assert tips.breathing == ["Exhale through the sticking point."]
        assert len(tips.common_mistakes) == 2

    def test_no_cues(self):
        assert extract_form_tips([make_doc("a", 0.9, text="Squats are old.")]).is_empty()

    async def test_exercise_question_attaches_tips(self, deps, context, search):
        search.results["squat-technique"] = [
            make_doc("s1", 0.9, text="Setup cue: bar on traps, brace.", category="Squat", title="Squat Setup")
        ]
        response = await ExerciseQuestionHandler().handle(
            "how do I squat?", classified(Intent.EXERCISE_QUESTION, exercise="squat"), context, deps
        )
        assert response.form_tips.setup == ["Setup cue: bar on traps, brace."]
        assert response.sources[0].title == "Squat Setup"

    async def test_exercise_question_without_documents(self, deps, context):
        response = await ExerciseQuestionHandler().handle(
            "how do I squat?", classified(Intent.EXERCISE_QUESTION, exercise="squat"), context, deps
        )
        assert response.form_tips is None
        assert response.sources is None


class TestProgramHandler:

    @pytest.fixture
    def generated(self):
        return GeneratedProgram(
            name="Strength Block",
            program_type="strength",
            primary_goal="get stronger",
            duration_weeks=8,
            days_per_week=4,
            weeks=[{"week": 1, "focus": "volume", "sessions": ["squat day"]}],
        )

    @pytest.fixture
    async def completed_questionnaire(self, store):
        await store.save_questionnaire(
            ProgramQuestionnaire(
                user_id="user-1",
                data={"trainingType": "strength_only"},
                completed_at=datetime.now(timezone.utc),
            )
        )

    def test_detect_race_distance(self):
        assert detect_race_distance("train me for a half marathon") == "halfmarathon"
        assert detect_race_distance("couch to 5k plan") == "couchto5k"
        assert detect_race_distance("get me fit") is None

    async def test_full_program_starts_questionnaire(self, deps, context):
        response = await ProgramHandler().handle(
            "build me a 12 week program", classified(Intent.FULL_PROGRAM), context, deps
        )
        assert response.needs_confirmation is True
        assert response.confirmation_data["action"] == "start_questionnaire"
        assert response.questions_needed[0].field == "trainingType"

    async def test_running_program_asks_running_questions(self, deps, context):
        response = await ProgramHandler().handle(
            "create me a half marathon plan", classified(Intent.RUNNING_PROGRAM), context, deps
        )
        assert response.confirmation_data["target_distance"] == "halfmarathon"
        assert [q.field for q in response.questions_needed] == [
            "experienceLevel", "weeklyMileage", "targetRaceDate",
        ]

    async def test_active_program_offers_choices(self, deps, context, store, completed_questionnaire):
        program_id = await store.save_program(
            TrainingProgram(user_id="user-1", name="Current Block", status="active",
                            duration_weeks=12, days_per_week=4, current_week=3)
        )
        response = await ProgramHandler().handle(
            "build me a new program", classified(Intent.FULL_PROGRAM), context, deps
        )
        assert response.confirmation_data == {
            "action": "program_exists", "program_id": program_id, "program_name": "Current Block",
        }
        assert "Week 3/12" in response.message

    async def test_generates_and_saves(self, deps, context, generated, completed_questionnaire):
        generator = MagicMock()
        generator.generate = AsyncMock(return_value=generated)
        deps = replace(deps, program_generator=generator)

        response = await ProgramHandler().handle(
            "build me a program", classified(Intent.FULL_PROGRAM), context, deps
        )

        assert response.program_generated.name == "Strength Block"
        assert response.program_generated.duration_weeks == 8
        assert response.confirmation_data["program_id"] == response.program_generated.program_id
        answers = generator.generate.call_args.args[0]
        assert answers == {"trainingType": "strength_only"}

    async def test_running_program_overrides_training_type(self, deps, context, generated,
                                                           completed_questionnaire):
        generator = MagicMock()
        generator.generate = AsyncMock(return_value=generated)
        deps = replace(deps, program_generator=generator)

        await ProgramHandler().handle("make me a 10k plan", classified(Intent.RUNNING_PROGRAM), context, deps)

        answers = generator.generate.call_args.args[0]
        assert answers["trainingType"] == "running_only"
        assert answers["targetRaceDistance"] == "10k"

    async def test_generation_failure(self, deps, context, completed_questionnaire):
        generator = MagicMock()
        generator.generate = AsyncMock(side_effect=ValueError("bad json"))
        deps = replace(deps, program_generator=generator)

        response = await ProgramHandler().handle(
            "build me a program", classified(Intent.FULL_PROGRAM), context, deps
        )
        assert response.message == GENERATION_FAILED_MESSAGE
        assert response.program_generated is None

    async def test_no_generator_configured(self, deps, context, completed_questionnaire):
        response = await ProgramHandler().handle(
            "build me a program", classified(Intent.FULL_PROGRAM), context, deps
        )
        assert response.message == GENERATION_FAILED_MESSAGE


class TestConversationalHandlers:

    async def test_greeting_uses_name(self, deps, context):
        response = await GreetingHandler().handle("hey", classified(Intent.GREETING), context, deps)
        assert ", Sam" in response.message
        assert response.intent == Intent.GREETING

    async def test_greeting_without_name(self, deps, context):
        response = await GreetingHandler().handle(
            "hey", classified(Intent.GREETING), replace(context, name=None), deps
        )
        assert "Sam" not in response.message
        assert not response.message.startswith("Hey,")

    async def test_off_topic(self, deps, context):
        response = await OffTopicHandler().handle(
            "who won the game?", classified(Intent.OFF_TOPIC), context, deps
        )
        assert response.intent == Intent.OFF_TOPIC
        assert "fitness" in response.message
