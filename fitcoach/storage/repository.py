"""Persistence store for exercises, sets, benchmarks and programs.

``FitnessStore`` is the contract the coaching core depends on;
``SQLiteFitnessStore`` implements it on top of ``DatabaseManager``.
"""

import json
from datetime import datetime, timezone
from typing import List, Optional, Protocol

import structlog

from .database import DatabaseManager
from .models import (
    Exercise,
    LoggedSet,
    ProgramQuestionnaire,
    TrainingProgram,
    Wod,
    WodBenchmark,
    WodLog,
)

logger = structlog.get_logger()


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class FitnessStore(Protocol):
    """Point lookups, inserts and scalar aggregates used by the handlers."""

    async def find_exercise_exact(self, name: str) -> Optional[Exercise]: ...

    async def find_exercise_partial(self, name: str) -> Optional[Exercise]: ...

    async def find_exercise_by_synonym(self, name: str) -> Optional[Exercise]: ...

    async def get_exercise(self, exercise_id: str) -> Optional[Exercise]: ...

    async def find_substitutes(self, exercise_id: str, limit: int = 5) -> List[Exercise]: ...

    async def insert_set(self, logged_set: LoggedSet) -> str: ...

    async def max_estimated_1rm(self, user_id: str, exercise_id: str) -> Optional[float]: ...

    async def latest_set(self, user_id: str, exercise_id: str) -> Optional[LoggedSet]: ...

    async def find_wod(self, name: str) -> Optional[Wod]: ...

    async def insert_wod_log(self, log: WodLog) -> str: ...

    async def get_wod_benchmark(self, user_id: str, wod_id: str) -> Optional[WodBenchmark]: ...

    async def save_wod_benchmark(self, benchmark: WodBenchmark) -> None: ...

    async def latest_questionnaire(self, user_id: str) -> Optional[ProgramQuestionnaire]: ...

    async def active_program(self, user_id: str) -> Optional[TrainingProgram]: ...

    async def save_program(self, program: TrainingProgram) -> str: ...


class SQLiteFitnessStore:
    """FitnessStore backed by SQLite."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    # --- Exercises ---

    async def add_exercise(self, exercise: Exercise) -> None:
        """Insert or replace a catalog exercise."""
        async with self.db.get_connection() as conn:
            await conn.execute(
                """
                INSERT OR REPLACE INTO exercises (id, name, synonyms, primary_muscle, equipment)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    exercise.id,
                    exercise.name,
                    json.dumps(exercise.synonyms),
                    exercise.primary_muscle,
                    exercise.equipment,
                ),
            )
            await conn.commit()

    async def find_exercise_exact(self, name: str) -> Optional[Exercise]:
        async with self.db.get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM exercises WHERE lower(name) = lower(?) LIMIT 1",
                (name.strip(),),
            )
            row = await cursor.fetchone()
            return Exercise.from_row(row) if row else None

    async def find_exercise_partial(self, name: str) -> Optional[Exercise]:
        async with self.db.get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM exercises
                WHERE lower(name) LIKE '%' || lower(?) || '%'
                ORDER BY length(name) LIMIT 1
                """,
                (name.strip(),),
            )
            row = await cursor.fetchone()
            return Exercise.from_row(row) if row else None

    async def find_exercise_by_synonym(self, name: str) -> Optional[Exercise]:
        async with self.db.get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM exercises
                WHERE EXISTS (
                    SELECT 1 FROM json_each(exercises.synonyms)
                    WHERE lower(json_each.value) = lower(?)
                )
                LIMIT 1
                """,
                (name.strip(),),
            )
            row = await cursor.fetchone()
            return Exercise.from_row(row) if row else None

    async def get_exercise(self, exercise_id: str) -> Optional[Exercise]:
        async with self.db.get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM exercises WHERE id = ?", (exercise_id,)
            )
            row = await cursor.fetchone()
            return Exercise.from_row(row) if row else None

    async def find_substitutes(self, exercise_id: str, limit: int = 5) -> List[Exercise]:
        """Other exercises that train the same primary muscle."""
        async with self.db.get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT e.* FROM exercises e
                JOIN exercises original ON original.id = ?
                WHERE e.primary_muscle = original.primary_muscle AND e.id != original.id
                ORDER BY e.name LIMIT ?
                """,
                (exercise_id, limit),
            )
            rows = await cursor.fetchall()
            return [Exercise.from_row(row) for row in rows]

    # --- Sets ---

    async def insert_set(self, logged_set: LoggedSet) -> str:
        async with self.db.get_connection() as conn:
            await conn.execute(
                """
                INSERT INTO workout_sets (
                    id, workout_id, exercise_id, user_id, set_number, reps,
                    weight, weight_unit, rpe, estimated_1rm, is_pr,
                    logging_method, transcript, confidence, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    logged_set.id,
                    logged_set.workout_id,
                    logged_set.exercise_id,
                    logged_set.user_id,
                    logged_set.set_number,
                    logged_set.reps,
                    logged_set.weight,
                    logged_set.weight_unit,
                    logged_set.rpe,
                    logged_set.estimated_1rm,
                    logged_set.is_pr,
                    logged_set.logging_method,
                    logged_set.transcript,
                    logged_set.confidence,
                    _iso(logged_set.created_at),
                ),
            )
            await conn.commit()
        logger.info(
            "Logged set",
            set_id=logged_set.id,
            exercise_id=logged_set.exercise_id,
            set_number=logged_set.set_number,
            is_pr=logged_set.is_pr,
        )
        return logged_set.id

    async def max_estimated_1rm(self, user_id: str, exercise_id: str) -> Optional[float]:
        async with self.db.get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT MAX(estimated_1rm) FROM workout_sets
                WHERE user_id = ? AND exercise_id = ?
                """,
                (user_id, exercise_id),
            )
            row = await cursor.fetchone()
            return row[0] if row and row[0] is not None else None

    async def latest_set(self, user_id: str, exercise_id: str) -> Optional[LoggedSet]:
        async with self.db.get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM workout_sets
                WHERE user_id = ? AND exercise_id = ?
                ORDER BY created_at DESC LIMIT 1
                """,
                (user_id, exercise_id),
            )
            row = await cursor.fetchone()
            return LoggedSet.from_row(row) if row else None

    # --- Benchmark WODs ---

    async def add_wod(self, wod: Wod) -> None:
        """Insert or replace a benchmark workout."""
        async with self.db.get_connection() as conn:
            await conn.execute(
                "INSERT OR REPLACE INTO wods (id, name, description) VALUES (?, ?, ?)",
                (wod.id, wod.name, wod.description),
            )
            await conn.commit()

    async def find_wod(self, name: str) -> Optional[Wod]:
        async with self.db.get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM wods WHERE lower(name) = lower(?) LIMIT 1",
                (name.strip(),),
            )
            row = await cursor.fetchone()
            return Wod.from_row(row) if row else None

    async def insert_wod_log(self, log: WodLog) -> str:
        async with self.db.get_connection() as conn:
            await conn.execute(
                """
                INSERT INTO wod_logs (
                    id, user_id, wod_id, result_time_seconds, result_rounds,
                    result_reps, raw_input, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    log.id,
                    log.user_id,
                    log.wod_id,
                    log.result_time_seconds,
                    log.result_rounds,
                    log.result_reps,
                    log.raw_input,
                    _iso(log.created_at),
                ),
            )
            await conn.commit()
        return log.id

    async def get_wod_benchmark(self, user_id: str, wod_id: str) -> Optional[WodBenchmark]:
        async with self.db.get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM wod_benchmarks WHERE user_id = ? AND wod_id = ?",
                (user_id, wod_id),
            )
            row = await cursor.fetchone()
            return WodBenchmark.from_row(row) if row else None

    async def save_wod_benchmark(self, benchmark: WodBenchmark) -> None:
        """Insert or update the benchmark row for (user, wod)."""
        async with self.db.get_connection() as conn:
            await conn.execute(
                """
                INSERT INTO wod_benchmarks (
                    id, user_id, wod_id, wod_log_id, best_time_seconds,
                    previous_best_time_seconds, improvement_seconds,
                    achieved_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, wod_id) DO UPDATE SET
                    wod_log_id = excluded.wod_log_id,
                    best_time_seconds = excluded.best_time_seconds,
                    previous_best_time_seconds = excluded.previous_best_time_seconds,
                    improvement_seconds = excluded.improvement_seconds,
                    achieved_at = excluded.achieved_at,
                    updated_at = excluded.updated_at
                """,
                (
                    benchmark.id,
                    benchmark.user_id,
                    benchmark.wod_id,
                    benchmark.wod_log_id,
                    benchmark.best_time_seconds,
                    benchmark.previous_best_time_seconds,
                    benchmark.improvement_seconds,
                    _iso(benchmark.achieved_at),
                    _iso(benchmark.updated_at or datetime.now(timezone.utc)),
                ),
            )
            await conn.commit()

    # --- Programs ---

    async def save_questionnaire(self, questionnaire: ProgramQuestionnaire) -> None:
        async with self.db.get_connection() as conn:
            await conn.execute(
                """
                INSERT OR REPLACE INTO program_questionnaires
                    (id, user_id, data, created_at, completed_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    questionnaire.id,
                    questionnaire.user_id,
                    json.dumps(questionnaire.data),
                    _iso(questionnaire.created_at),
                    _iso(questionnaire.completed_at),
                ),
            )
            await conn.commit()

    async def latest_questionnaire(self, user_id: str) -> Optional[ProgramQuestionnaire]:
        async with self.db.get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM program_questionnaires
                WHERE user_id = ? ORDER BY created_at DESC LIMIT 1
                """,
                (user_id,),
            )
            row = await cursor.fetchone()
            return ProgramQuestionnaire.from_row(row) if row else None

    async def active_program(self, user_id: str) -> Optional[TrainingProgram]:
        async with self.db.get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM training_programs
                WHERE user_id = ? AND status = 'active'
                ORDER BY created_at DESC LIMIT 1
                """,
                (user_id,),
            )
            row = await cursor.fetchone()
            return TrainingProgram.from_row(row) if row else None

    async def save_program(self, program: TrainingProgram) -> str:
        async with self.db.get_connection() as conn:
            await conn.execute(
                """
                INSERT OR REPLACE INTO training_programs (
                    id, user_id, name, status, program_type, primary_goal,
                    duration_weeks, days_per_week, current_week, plan, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    program.id,
                    program.user_id,
                    program.name,
                    program.status,
                    program.program_type,
                    program.primary_goal,
                    program.duration_weeks,
                    program.days_per_week,
                    program.current_week,
                    json.dumps(program.plan),
                    _iso(program.created_at),
                ),
            )
            await conn.commit()
        logger.info("Saved training program", program_id=program.id, user_id=program.user_id)
        return program.id
