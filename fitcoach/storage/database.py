"""SQLite database manager with schema migrations."""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite
import structlog

from ..exceptions import StorageError

logger = structlog.get_logger()

MIGRATIONS: list[tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS exercises (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            synonyms TEXT NOT NULL DEFAULT '[]',
            primary_muscle TEXT,
            equipment TEXT
        );

        CREATE TABLE IF NOT EXISTS workout_sets (
            id TEXT PRIMARY KEY,
            workout_id TEXT NOT NULL,
            exercise_id TEXT NOT NULL REFERENCES exercises(id),
            user_id TEXT NOT NULL,
            set_number INTEGER NOT NULL,
            reps INTEGER NOT NULL,
            weight REAL,
            weight_unit TEXT NOT NULL DEFAULT 'lbs',
            rpe REAL,
            estimated_1rm REAL,
            is_pr BOOLEAN NOT NULL DEFAULT 0,
            logging_method TEXT NOT NULL DEFAULT 'voice',
            transcript TEXT,
            confidence REAL,
            created_at TIMESTAMP NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_workout_sets_user_exercise
            ON workout_sets (user_id, exercise_id);

        CREATE TABLE IF NOT EXISTS wods (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            description TEXT
        );

        CREATE TABLE IF NOT EXISTS wod_logs (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            wod_id TEXT NOT NULL REFERENCES wods(id),
            result_time_seconds INTEGER,
            result_rounds INTEGER,
            result_reps INTEGER,
            raw_input TEXT,
            created_at TIMESTAMP NOT NULL
        );

        CREATE TABLE IF NOT EXISTS wod_benchmarks (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            wod_id TEXT NOT NULL REFERENCES wods(id),
            wod_log_id TEXT,
            best_time_seconds INTEGER,
            previous_best_time_seconds INTEGER,
            improvement_seconds INTEGER,
            achieved_at TIMESTAMP,
            updated_at TIMESTAMP,
            UNIQUE (user_id, wod_id)
        );
        """,
    ),
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS program_questionnaires (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            data TEXT NOT NULL DEFAULT '{}',
            created_at TIMESTAMP NOT NULL,
            completed_at TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS training_programs (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'draft',
            program_type TEXT,
            primary_goal TEXT,
            duration_weeks INTEGER NOT NULL,
            days_per_week INTEGER NOT NULL,
            current_week INTEGER NOT NULL DEFAULT 1,
            plan TEXT NOT NULL DEFAULT '{}',
            created_at TIMESTAMP NOT NULL
        );
        """,
    ),
]


def _database_path(database_url: str) -> str:
    """Extract the file path from a ``sqlite:///`` URL."""
    prefix = "sqlite:///"
    if database_url.startswith(prefix):
        return database_url[len(prefix):]
    return database_url


class DatabaseManager:
    """Owns the SQLite connection and applies migrations."""

    def __init__(self, database_url: str) -> None:
        self.database_path = _database_path(database_url)
        self._connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open the connection and bring the schema up to date."""
        if self.database_path != ":memory:":
            Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self._connection = await aiosqlite.connect(self.database_path)
        except Exception as exc:
            raise StorageError(f"Cannot open database {self.database_path}: {exc}") from exc

        self._connection.row_factory = aiosqlite.Row
        await self._connection.execute("PRAGMA foreign_keys = ON")
        await self._run_migrations()
        logger.info("Database initialized", path=self.database_path)

    async def _run_migrations(self) -> None:
        assert self._connection is not None
        conn = self._connection
        await conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version (version INTEGER PRIMARY KEY)"
        )
        cursor = await conn.execute("SELECT MAX(version) FROM schema_version")
        row = await cursor.fetchone()
        current = row[0] if row and row[0] is not None else 0

        for version, script in MIGRATIONS:
            if version <= current:
                continue
            await conn.executescript(script)
            await conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
            await conn.commit()
            logger.info("Applied migration", version=version)

    @asynccontextmanager
    async def get_connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Exclusive access to the shared connection."""
        if self._connection is None:
            raise StorageError("Database not initialized")
        async with self._lock:
            yield self._connection

    async def close(self) -> None:
        """Close the connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("Database closed")
