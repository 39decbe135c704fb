"""Default exercise and benchmark catalog."""

from typing import Iterable, Optional

import structlog

from .models import Exercise, Wod
from .repository import SQLiteFitnessStore

logger = structlog.get_logger()

DEFAULT_EXERCISES: list[Exercise] = [
    Exercise(id="bench-press", name="Bench Press", synonyms=["bench", "flat bench", "barbell bench"],
             primary_muscle="chest", equipment="barbell"),
    Exercise(id="incline-dumbbell-press", name="Incline Dumbbell Press", synonyms=["incline press", "incline db press"],
             primary_muscle="chest", equipment="dumbbell"),
    Exercise(id="push-up", name="Push-Up", synonyms=["pushup", "push up", "pushups"],
             primary_muscle="chest", equipment="bodyweight"),
    Exercise(id="dumbbell-fly", name="Dumbbell Fly", synonyms=["flyes", "chest fly"],
             primary_muscle="chest", equipment="dumbbell"),
    Exercise(id="back-squat", name="Squat", synonyms=["back squat", "squats", "barbell squat"],
             primary_muscle="quadriceps", equipment="barbell"),
    Exercise(id="front-squat", name="Front Squat", synonyms=["front squats"],
             primary_muscle="quadriceps", equipment="barbell"),
    Exercise(id="leg-press", name="Leg Press", synonyms=["sled press"],
             primary_muscle="quadriceps", equipment="machine"),
    Exercise(id="lunge", name="Lunge", synonyms=["lunges", "walking lunge"],
             primary_muscle="quadriceps", equipment="dumbbell"),
    Exercise(id="deadlift", name="Deadlift", synonyms=["conventional deadlift", "deadlifts", "dl"],
             primary_muscle="hamstrings", equipment="barbell"),
    Exercise(id="romanian-deadlift", name="Romanian Deadlift", synonyms=["rdl", "rdls"],
             primary_muscle="hamstrings", equipment="barbell"),
    Exercise(id="overhead-press", name="Overhead Press", synonyms=["ohp", "military press", "shoulder press"],
             primary_muscle="shoulders", equipment="barbell"),
    Exercise(id="lateral-raise", name="Lateral Raise", synonyms=["side raise", "lateral raises"],
             primary_muscle="shoulders", equipment="dumbbell"),
    Exercise(id="pull-up", name="Pull-Up", synonyms=["pullup", "pull up", "pullups", "chin up"],
             primary_muscle="lats", equipment="bodyweight"),
    Exercise(id="lat-pulldown", name="Lat Pulldown", synonyms=["pulldown", "lat pull"],
             primary_muscle="lats", equipment="cable"),
    Exercise(id="barbell-row", name="Barbell Row", synonyms=["row", "bent over row", "rows"],
             primary_muscle="lats", equipment="barbell"),
    Exercise(id="barbell-curl", name="Barbell Curl", synonyms=["curl", "curls", "bicep curl"],
             primary_muscle="biceps", equipment="barbell"),
    Exercise(id="tricep-dip", name="Dip", synonyms=["dips", "tricep dip"],
             primary_muscle="triceps", equipment="bodyweight"),
]

DEFAULT_WODS: list[Wod] = [
    Wod(id="fran", name="Fran", description="21-15-9 thrusters (95/65) and pull-ups"),
    Wod(id="murph", name="Murph", description="1 mile run, 100 pull-ups, 200 push-ups, 300 squats, 1 mile run"),
    Wod(id="cindy", name="Cindy", description="AMRAP 20: 5 pull-ups, 10 push-ups, 15 air squats"),
    Wod(id="grace", name="Grace", description="30 clean and jerks for time (135/95)"),
    Wod(id="helen", name="Helen", description="3 rounds: 400m run, 21 kettlebell swings, 12 pull-ups"),
    Wod(id="diane", name="Diane", description="21-15-9 deadlifts (225/155) and handstand push-ups"),
    Wod(id="annie", name="Annie", description="50-40-30-20-10 double-unders and sit-ups"),
    Wod(id="karen", name="Karen", description="150 wall-ball shots for time"),
    Wod(id="jackie", name="Jackie", description="1000m row, 50 thrusters, 30 pull-ups"),
    Wod(id="isabel", name="Isabel", description="30 snatches for time (135/95)"),
]


async def seed_catalog(
    store: SQLiteFitnessStore,
    exercises: Optional[Iterable[Exercise]] = None,
    wods: Optional[Iterable[Wod]] = None,
) -> None:
    """Load the exercise and benchmark catalog into the store."""
    exercise_list = list(exercises if exercises is not None else DEFAULT_EXERCISES)
    wod_list = list(wods if wods is not None else DEFAULT_WODS)

    for exercise in exercise_list:
        await store.add_exercise(exercise)
    for wod in wod_list:
        await store.add_wod(wod)

    logger.info("Catalog seeded", exercises=len(exercise_list), wods=len(wod_list))
