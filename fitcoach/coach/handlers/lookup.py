"""Exercise name resolution."""

from typing import Optional

import structlog

from ...storage.models import Exercise
from ...storage.repository import FitnessStore

logger = structlog.get_logger()


async def resolve_exercise(store: FitnessStore, name: str) -> Optional[Exercise]:
    """Exact name, then substring, then synonym. None if nothing matches."""
    name = name.strip()
    if not name:
        return None

    for method, lookup in (
        ("exact", store.find_exercise_exact),
        ("partial", store.find_exercise_partial),
        ("synonym", store.find_exercise_by_synonym),
    ):
        exercise = await lookup(name)
        if exercise:
            logger.debug("Exercise resolved", query=name, method=method, exercise_id=exercise.id)
            return exercise

    logger.info("Exercise not resolved", query=name)
    return None
