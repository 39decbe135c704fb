"""Tests for SQLiteFitnessStore."""

from datetime import datetime, timedelta, timezone

import pytest

from fitcoach.exceptions import StorageError
from fitcoach.storage.database import DatabaseManager
from fitcoach.storage.models import (
    LoggedSet,
    ProgramQuestionnaire,
    TrainingProgram,
    WodBenchmark,
    WodLog,
)


def _set(**overrides) -> LoggedSet:
    defaults = dict(
        workout_id="w1",
        exercise_id="bench-press",
        user_id="u1",
        set_number=1,
        reps=8,
        weight=185,
        estimated_1rm=234.33,
    )
    defaults.update(overrides)
    return LoggedSet(**defaults)


class TestDatabaseManager:

    async def test_migrations_are_idempotent(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'nested' / 'fit.db'}"
        manager = DatabaseManager(url)
        await manager.initialize()
        await manager.close()

        manager = DatabaseManager(url)
        await manager.initialize()
        async with manager.get_connection() as conn:
            cursor = await conn.execute("SELECT MAX(version) FROM schema_version")
            row = await cursor.fetchone()
        await manager.close()
        assert row[0] == 2

    async def test_connection_before_initialize(self):
        manager = DatabaseManager("sqlite:///:memory:")
        with pytest.raises(StorageError):
            async with manager.get_connection():
                pass


class TestExerciseLookup:

    async def test_exact_is_case_insensitive(self, store):
        exercise = await store.find_exercise_exact("bench press")
        assert exercise.id == "bench-press"

    async def test_partial(self, store):
        exercise = await store.find_exercise_partial("pulldown")
        assert exercise.id == "lat-pulldown"

    async def test_synonym(self, store):
        exercise = await store.find_exercise_by_synonym("RDL")
        assert exercise.id == "romanian-deadlift"
        assert "rdl" in exercise.synonyms

    async def test_get_by_id(self, store):
        exercise = await store.get_exercise("back-squat")
        assert exercise.name == "Squat"
        assert await store.get_exercise("missing") is None

    async def test_unknown(self, store):
        assert await store.find_exercise_exact("zercher carry") is None
        assert await store.find_exercise_partial("zercher carry") is None
        assert await store.find_exercise_by_synonym("zercher carry") is None

    async def test_substitutes_share_primary_muscle(self, store):
        substitutes = await store.find_substitutes("bench-press")
        assert substitutes
        assert all(s.primary_muscle == "chest" for s in substitutes)
        assert "bench-press" not in {s.id for s in substitutes}


class TestSets:

    async def test_max_estimated_1rm(self, store):
        assert await store.max_estimated_1rm("u1", "bench-press") is None
        await store.insert_set(_set(estimated_1rm=200.0))
        await store.insert_set(_set(set_number=2, estimated_1rm=240.0))
        await store.insert_set(_set(user_id="u2", estimated_1rm=400.0))
        assert await store.max_estimated_1rm("u1", "bench-press") == 240.0

    async def test_latest_set(self, store):
        now = datetime.now(timezone.utc)
        await store.insert_set(_set(weight=135, created_at=now - timedelta(days=1)))
        await store.insert_set(_set(weight=155, set_number=2, created_at=now))
        latest = await store.latest_set("u1", "bench-press")
        assert latest.weight == 155
        assert latest.set_number == 2
        assert latest.is_pr is False


class TestWods:

    async def test_find_wod_case_insensitive(self, store):
        wod = await store.find_wod("FRAN")
        assert wod.id == "fran"

    async def test_benchmark_upsert(self, store):
        log = WodLog(user_id="u1", wod_id="fran", result_time_seconds=300)
        await store.insert_wod_log(log)
        await store.save_wod_benchmark(
            WodBenchmark(user_id="u1", wod_id="fran", wod_log_id=log.id, best_time_seconds=300)
        )
        await store.save_wod_benchmark(
            WodBenchmark(
                user_id="u1",
                wod_id="fran",
                best_time_seconds=240,
                previous_best_time_seconds=300,
                improvement_seconds=60,
            )
        )
        benchmark = await store.get_wod_benchmark("u1", "fran")
        assert benchmark.best_time_seconds == 240
        assert benchmark.previous_best_time_seconds == 300
        assert benchmark.improvement_seconds == 60


class TestPrograms:

    async def test_latest_questionnaire(self, store):
        now = datetime.now(timezone.utc)
        await store.save_questionnaire(
            ProgramQuestionnaire(user_id="u1", data={"trainingType": "hybrid"}, created_at=now - timedelta(days=2))
        )
        await store.save_questionnaire(
            ProgramQuestionnaire(
                user_id="u1", data={"trainingType": "strength_only"}, created_at=now, completed_at=now
            )
        )
        latest = await store.latest_questionnaire("u1")
        assert latest.data == {"trainingType": "strength_only"}
        assert latest.is_complete

    async def test_active_program(self, store):
        await store.save_program(
            TrainingProgram(user_id="u1", name="Draft", duration_weeks=8, days_per_week=3)
        )
        assert await store.active_program("u1") is None

        program_id = await store.save_program(
            TrainingProgram(
                user_id="u1", name="Strength Block", status="active", duration_weeks=12,
                days_per_week=4, plan={"weeks": [{"week": 1}]},
            )
        )
        active = await store.active_program("u1")
        assert active.id == program_id
        assert active.plan == {"weeks": [{"week": 1}]}
