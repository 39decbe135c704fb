"""Knowledge partition selection."""

from ..classifier.models import ExtractedData, Intent

MAX_PARTITIONS = 3
GENERAL_PARTITION = "general"

# Static base table; exercise_question and recovery are refined per entity.
INTENT_PARTITIONS: dict[Intent, list[str]] = {
    Intent.NUTRITION: ["nutrition-and-supplementation", "nutrition"],
    Intent.RECOVERY: ["recovery-and-performance", "recovery"],
    Intent.PROGRAM_REQUEST: ["programming", "program-templates", "periodization-concepts"],
    Intent.PROGRAM_QUESTION: ["programming", "periodization-concepts"],
    Intent.FULL_PROGRAM: ["programming", "periodization-concepts", "program-templates"],
    Intent.RUNNING: ["running", "endurance-training"],
    Intent.RUNNING_PROGRAM: ["running", "endurance-training", "periodization-concepts"],
    Intent.EXERCISE_SWAP: ["movement-patterns", "strength-and-hypertrophy"],
    Intent.GENERAL_FITNESS: ["strength-and-hypertrophy", "beginner-fundamentals"],
}


def _exercise_partitions(exercise: str) -> list[str]:
    if "squat" in exercise:
        return ["squat-technique", "movement-patterns"]
    if "bench" in exercise or "press" in exercise or "deadlift" in exercise:
        return ["sticking-points", "movement-patterns"]
    return ["movement-patterns", "strength-and-hypertrophy"]


def get_enhanced_indexes(intent: Intent, extracted: ExtractedData) -> list[str]:
    """Ordered, deduplicated partition names for a query, at most three.

    ``general`` is always appended as the catch-all before the cap applies.
    """
    exercise = (extracted.exercise or "").lower()
    body_part = (extracted.body_part or "").lower()

    indexes: list[str] = []
    if intent == Intent.EXERCISE_QUESTION:
        indexes.extend(_exercise_partitions(exercise))
    elif intent == Intent.RECOVERY:
        if body_part:
            indexes.extend(["injury-prevention", "injury-management"])
        indexes.extend(INTENT_PARTITIONS[Intent.RECOVERY])
    else:
        if intent == Intent.GENERAL_FITNESS:
            indexes.append(GENERAL_PARTITION)
        indexes.extend(INTENT_PARTITIONS.get(intent, []))

    indexes.append(GENERAL_PARTITION)

    return list(dict.fromkeys(indexes))[:MAX_PARTITIONS]
