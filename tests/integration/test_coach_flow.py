"""Integration test: a logging session through the full coach."""

import random
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import FakeCompletion, FakeSearch, make_doc

from fitcoach.classifier.fallback import IntentClassifier
from fitcoach.classifier.models import Intent
from fitcoach.coach.handlers import HandlerDeps
from fitcoach.coach.models import UserContext
from fitcoach.coach.orchestrator import CoachOrchestrator
from fitcoach.rag.cache import MemoryCache
from fitcoach.rag.retriever import KnowledgeRetriever
from fitcoach.session.store import SessionStore


@pytest.fixture
def search():
    return FakeSearch(
        {
            "sticking-points": [
                make_doc("bp-1", 0.92, text="Cue: drive your feet and keep the shoulder blades pinned.",
                         category="Bench Press"),
            ],
            "movement-patterns": [
                make_doc("mp-1", 0.71, text="Horizontal pressing trains chest, shoulders and triceps.",
                         category="Pressing"),
            ],
        }
    )


@pytest.fixture
def classifier_llm():
    service = MagicMock()
    service.complete = AsyncMock(
        return_value='{"intent": "recovery", "confidence": 0.7, "extractedData": {}}'
    )
    return service


@pytest.fixture
def coach(store, search, classifier_llm):
    cache = MemoryCache()
    deps = HandlerDeps(
        store=store,
        sessions=SessionStore(cache),
        retriever=KnowledgeRetriever(search, cache=cache),
        completion=FakeCompletion(reply="Pin your shoulder blades and drive through the floor."),
        rng=random.Random(3),
    )
    return CoachOrchestrator(IntentClassifier(classifier_llm), deps)


@pytest.fixture
def lifter():
    return UserContext(user_id="lifter-1", name="Alex", active_workout_id="w-100")


class TestCoachFlow:

    async def test_logging_session(self, coach, lifter, store, classifier_llm):
        first = await coach.process_message("bench press 185 for 8 reps", lifter)

        assert first.intent == Intent.WORKOUT_LOG
        assert first.workout_logged.exercise_name == "Bench Press"
        assert first.workout_logged.weight == 185
        assert first.workout_logged.weight_unit == "lbs"
        assert first.workout_logged.reps == 8
        assert first.workout_logged.set_number == 1
        assert first.workout_logged.is_pr is False
        assert "PR" not in first.message
        classifier_llm.complete.assert_not_called()

        second = await coach.process_message("bench press 195 for 8 reps", lifter)
        assert second.workout_logged.set_number == 2
        assert second.workout_logged.is_pr is True

        third = await coach.process_message("just did 8 reps same weight", lifter)
        assert third.workout_logged.set_number == 3
        assert third.workout_logged.weight == 195
        assert third.workout_logged.is_pr is False

        switched = await coach.process_message("squat 225 for 5", lifter)
        assert switched.workout_logged.exercise_id == "back-squat"
        assert switched.workout_logged.set_number == 1

        latest = await store.latest_set("lifter-1", "bench-press")
        assert latest.set_number == 3

    async def test_form_question_mid_session_keeps_numbering(self, coach, lifter):
        await coach.process_message("bench press 185 for 8 reps", lifter)
        await coach.process_message("bench press 185 for 8 reps", lifter)

        question = await coach.process_message("how do i hold on to the bar during bench press?", lifter)
        assert question.intent == Intent.EXERCISE_QUESTION

        third = await coach.process_message("bench press 185 for 8 reps", lifter)
        assert third.workout_logged.set_number == 3

    async def test_form_question_uses_knowledge(self, coach, lifter, search):
        response = await coach.process_message("how do I improve my bench press form?", lifter)

        assert response.intent == Intent.EXERCISE_QUESTION
        assert response.message == "Pin your shoulder blades and drive through the floor."
        assert response.form_tips.execution
        partitions = {call[0] for call in search.calls}
        assert {"sticking-points", "movement-patterns", "general"} <= partitions

    async def test_ambiguous_message_escalates(self, coach, lifter, classifier_llm):
        response = await coach.process_message("i feel kind of off lately", lifter)

        classifier_llm.complete.assert_awaited_once()
        assert response.intent == Intent.RECOVERY

    async def test_benchmark_wod(self, coach, lifter):
        first = await coach.process_message("Fran 4:10", lifter)
        second = await coach.process_message("Fran 3:45", lifter)

        assert first.intent == Intent.WOD_LOG
        assert second.wod_logged.is_pr is True
        assert second.wod_logged.improvement_seconds == 25
