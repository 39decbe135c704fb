"""SQLite persistence for exercises, sets, benchmarks and programs."""

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
from .repository import FitnessStore, SQLiteFitnessStore
from .seed import seed_catalog

__all__ = [
    "DatabaseManager",
    "Exercise",
    "FitnessStore",
    "LoggedSet",
    "ProgramQuestionnaire",
    "SQLiteFitnessStore",
    "TrainingProgram",
    "Wod",
    "WodBenchmark",
    "WodLog",
    "seed_catalog",
]
