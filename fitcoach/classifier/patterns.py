"""Fast pattern-based message classifier.

Handles the common message shapes with regexes and never touches the
network. Each rule carries a fixed confidence band; rule order matters
because later rules assume earlier ones already claimed the more specific
matches. When nothing fires the message is escalated to the completion
service (see ``fallback.py``).
"""

import re
from typing import Any, Optional

from .models import (
    ClassificationResult,
    ExtractedData,
    Intent,
    Matched,
    NeedsEscalation,
    PatternOutcome,
)

DEFAULT_CONFIDENCE_THRESHOLD = 0.75

# --- Shared lexicons ---

EXERCISE_PATTERN = re.compile(
    r"\b(squat|bench\s*press|bench|deadlift|overhead\s*press|ohp|row|pull[-\s]?up"
    r"|chin[-\s]?up|curl|tricep|dip|lunge|leg\s*press|lat\s*pull(?:down)?|cable|fly"
    r"|raise|extension|press|shrug)s?\b",
    re.I,
)

WOD_PATTERN = re.compile(
    r"\b(fran|murph|cindy|grace|isabel|diane|helen|annie|jackie|karen|mary|nancy"
    r"|chelsea|amanda|angie|barbara|filthy\s*fifty)\b",
    re.I,
)

BODY_PART_PATTERN = re.compile(
    r"\b(lower\s*back|shoulder|back|chest|leg|arm|bicep|tricep|quad|hamstring|glute"
    r"|calf|core|ab|hip|knee|wrist|elbow|neck)s?\b",
    re.I,
)

# --- Rule patterns ---

GREETING_PATTERN = re.compile(
    r"^(hey|hello|hi|yo|sup|what'?s\s*up|good\s*(morning|afternoon|evening))(\s|$|!)",
    re.I,
)

CLEAR_SESSION_PATTERN = re.compile(
    r"\b(end|clear|reset|close)\s+(the\s+|my\s+|this\s+)?(logging\s+)?(session|workout)\b",
    re.I,
)

WOD_CLOCK_PATTERN = re.compile(r"(\d{1,2}):(\d{2})")
WOD_MINUTES_PATTERN = re.compile(r"(\d+)\s*(min|minute)", re.I)
WOD_ROUNDS_PATTERN = re.compile(
    r"(\d+)\s*(?:rounds?|rds?)(?:\s*(?:\+|and|plus)\s*(\d+)\s*(?:reps?)?)?", re.I
)

NUMBER_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(lbs?|kg|kgs|pounds?|kilos?)?", re.I)
REPS_PATTERN = re.compile(r"(?:for|x|times)\s*(\d+)|(\d+)\s*(?:reps?|times)", re.I)
HAS_REPS_PATTERN = re.compile(r"(for|x|times)\s*\d+|\d+\s*(reps?|times)", re.I)
RPE_PATTERN = re.compile(r"(?:\brpe|@)\s*(\d+(?:\.\d)?)", re.I)
SETS_PATTERN = re.compile(r"(\d+)\s*sets?\b", re.I)
SETS_X_REPS_PATTERN = re.compile(r"\b(\d{1,2})\s*x\s*(\d{1,2})\b", re.I)
ACTION_VERB_PATTERN = re.compile(r"\b(did|just|finished|completed|hit|got|logged)\b")

SET_EXERCISE_PATTERN = re.compile(
    r"\b(switch(ing)?\s+to|mov(e|ing)\s+on\s+to|next\s+exercise|now\s+doing)\b"
    r"|^start(ing)?\s+with\b|^starting\b",
    re.I,
)

SWAP_PATTERN = re.compile(r"(instead\s*of|alternative|substitute|swap|replace|switch)", re.I)

QUESTION_START_PATTERN = re.compile(
    r"^(how|what|why|when|should|can|do|does|is|are|will|show|tell)\s", re.I
)
FORM_QUESTION_PATTERN = re.compile(
    r"(how\s*(to|do\s*i)|proper|correct|form|technique|muscles?|target|work|cue)", re.I
)

OFF_TOPIC_PATTERN = re.compile(
    r"(weather|movie|music|news|politics|stock|crypto|bitcoin|game|tv\s*show)", re.I
)

RECOVERY_PATTERN = re.compile(
    r"(hurt|pain|sore|soreness|injury|injured|strain|ache|tight|stiff|rest\s*day"
    r"|should\s*i\s*rest)",
    re.I,
)

PROGRAM_VERB_PATTERN = re.compile(r"(create|build|make|design|give\s*me|plan)\s", re.I)
MULTI_WEEK_PATTERN = re.compile(
    r"(\d+\s*week|multi|full|complete|training\s*program|training\s*plan)", re.I
)
DAILY_WORKOUT_PATTERN = re.compile(
    r"(today|push\s*day|pull\s*day|leg\s*day|what\s*should\s*i\s*do)", re.I
)
RACE_DISTANCE_PATTERN = re.compile(
    r"(couch\s*to\s*5k|half[-\s]?marathon|marathon|5k|10k)", re.I
)
RUNNING_PATTERN = re.compile(
    r"\b(run|runs|running|jog|jogging|pace|5k|10k|marathon|cardio|mile|miles)\b", re.I
)

NUTRITION_PATTERN = re.compile(
    r"\b(protein|carbs?|calories?|diet|macros?|nutrition|meals?|pre[-\s]?workout"
    r"|post[-\s]?workout|supplements?)\b",
    re.I,
)
EATING_PATTERN = re.compile(r"\b(eat|eating|food)\b", re.I)


def _result(
    intent: Intent,
    confidence: float,
    extracted: ExtractedData,
    pattern_name: str,
) -> ClassificationResult:
    return ClassificationResult(
        intent=intent,
        confidence=confidence,
        extracted_data=extracted,
        used_pattern=True,
        pattern_name=pattern_name,
    )


def _normalize_exercise(raw: str) -> str:
    return re.sub(r"\s+", " ", raw).strip()


def _number(text: str) -> float:
    value = float(text)
    return int(value) if value.is_integer() else value


def parse_wod_time(lower: str) -> Optional[int]:
    """Elapsed seconds from ``m:ss`` or ``N minutes``."""
    clock = WOD_CLOCK_PATTERN.search(lower)
    if clock:
        return int(clock.group(1)) * 60 + int(clock.group(2))
    minutes = WOD_MINUTES_PATTERN.search(lower)
    if minutes:
        return int(minutes.group(1)) * 60
    return None


def _unreserved_numbers(lower: str, reserved: list[tuple[int, int]]):
    for match in NUMBER_PATTERN.finditer(lower):
        start = match.start(1)
        if not any(lo <= start < hi for lo, hi in reserved):
            yield match


def extract_set_fields(lower: str, extracted: ExtractedData) -> None:
    """Fill weight, unit, reps, sets and RPE for a set/rep log message.

    Numbers that belong to the reps, sets or RPE markers are not considered
    as the weight. A compact ``3x5`` is read as sets by reps only when some
    other number is left over for the weight, so ``bench 95 x 5`` stays a
    weight and a rep count.
    """
    reserved: list[tuple[int, int]] = []

    rpe_match = RPE_PATTERN.search(lower)
    if rpe_match:
        extracted.rpe = float(rpe_match.group(1))
        reserved.append(rpe_match.span())

    scheme_match = SETS_X_REPS_PATTERN.search(lower)
    if scheme_match and any(_unreserved_numbers(lower, reserved + [scheme_match.span()])):
        extracted.sets = int(scheme_match.group(1))
        extracted.reps = int(scheme_match.group(2))
        reserved.append(scheme_match.span())
    else:
        reps_match = REPS_PATTERN.search(lower)
        if reps_match:
            extracted.reps = int(reps_match.group(1) or reps_match.group(2))
            reserved.append(reps_match.span())

    sets_match = SETS_PATTERN.search(lower)
    if sets_match and extracted.sets is None:
        extracted.sets = int(sets_match.group(1))
        reserved.append(sets_match.span())

    for match in _unreserved_numbers(lower, reserved):
        extracted.weight = _number(match.group(1))
        unit = match.group(2)
        extracted.weight_unit = "kg" if unit and unit.lower().startswith("k") else "lbs"
        break


def match_patterns(
    message: str,
    context: Optional[dict[str, Any]] = None,
    threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
) -> PatternOutcome:
    """Run the rule battery and decide whether escalation is needed."""
    result = classify_with_patterns(message, context)
    if result is not None and result.confidence >= threshold:
        return Matched(result)
    return NeedsEscalation(best_guess=result)


def classify_with_patterns(
    message: str,
    context: Optional[dict[str, Any]] = None,
) -> Optional[ClassificationResult]:
    """Classify a message with regex rules.

    Returns None when no rule fires; that is the signal to use the
    completion-backed classifier.
    """
    lower = message.lower().strip()
    extracted = ExtractedData()

    exercise_match = EXERCISE_PATTERN.search(lower)
    if exercise_match:
        extracted.exercise = _normalize_exercise(exercise_match.group(1))

    body_part_match = BODY_PART_PATTERN.search(lower)
    if body_part_match:
        extracted.body_part = _normalize_exercise(body_part_match.group(1))

    # Greeting
    if GREETING_PATTERN.search(lower):
        return _result(Intent.GREETING, 0.95, ExtractedData(), "greeting")

    # Session control
    if CLEAR_SESSION_PATTERN.search(lower):
        return _result(Intent.CLEAR_SESSION, 0.85, ExtractedData(), "clear_session")

    # Benchmark WOD results
    wod_match = WOD_PATTERN.search(lower)
    if wod_match:
        extracted.wod_name = _normalize_exercise(wod_match.group(1))
        extracted.wod_time = parse_wod_time(lower)
        if extracted.wod_time is None:
            rounds = WOD_ROUNDS_PATTERN.search(lower)
            if rounds:
                extracted.wod_rounds = int(rounds.group(1))
                if rounds.group(2):
                    extracted.wod_reps = int(rounds.group(2))
        return _result(Intent.WOD_LOG, 0.9, extracted, "wod_log")

    # Set/rep logging: "bench 185 for 8", "just did 100kg x 5"
    has_weight = NUMBER_PATTERN.search(lower) is not None
    has_reps = HAS_REPS_PATTERN.search(lower) is not None
    has_action_verb = ACTION_VERB_PATTERN.search(lower) is not None
    is_not_question = "?" not in lower

    if (has_weight and has_reps and is_not_question) or (
        has_action_verb and (has_weight or has_reps)
    ):
        extract_set_fields(lower, extracted)
        return _result(Intent.WORKOUT_LOG, 0.85, extracted, "workout_log")

    is_question = not is_not_question or QUESTION_START_PATTERN.search(lower) is not None

    # Switching the current exercise; questions never move the session
    if (
        extracted.exercise
        and not is_question
        and SET_EXERCISE_PATTERN.search(lower)
        and not re.search(r"instead\s*of|alternative|substitute", lower)
    ):
        return _result(Intent.SET_EXERCISE, 0.85, extracted, "set_exercise")

    # Substitutions
    if SWAP_PATTERN.search(lower):
        return _result(Intent.EXERCISE_SWAP, 0.9, extracted, "swap")

    # Exercise / form questions
    is_form_question = FORM_QUESTION_PATTERN.search(lower) is not None

    if is_question and is_form_question and extracted.exercise:
        return _result(Intent.EXERCISE_QUESTION, 0.9, extracted, "exercise_question")

    if is_form_question and not has_weight:
        return _result(
            Intent.EXERCISE_QUESTION, 0.75, extracted, "exercise_question_general"
        )

    # Off-topic goes before recovery and nutrition to avoid lexical collisions
    if OFF_TOPIC_PATTERN.search(lower):
        return _result(Intent.OFF_TOPIC, 0.8, ExtractedData(), "off_topic")

    if RECOVERY_PATTERN.search(lower):
        return _result(Intent.RECOVERY, 0.85, extracted, "recovery")

    # Programs (checked before nutrition so "create" never trips on "eat")
    is_program_request = PROGRAM_VERB_PATTERN.search(lower) is not None
    is_multi_week = MULTI_WEEK_PATTERN.search(lower) is not None
    is_daily_workout = DAILY_WORKOUT_PATTERN.search(lower) is not None

    if is_program_request and RACE_DISTANCE_PATTERN.search(lower):
        return _result(Intent.RUNNING_PROGRAM, 0.85, extracted, "running_program")

    if is_program_request and is_multi_week:
        return _result(Intent.FULL_PROGRAM, 0.85, extracted, "full_program")

    if is_program_request or is_daily_workout:
        return _result(Intent.PROGRAM_REQUEST, 0.75, extracted, "program_request")

    if RUNNING_PATTERN.search(lower):
        return _result(Intent.RUNNING, 0.8, extracted, "running")

    if NUTRITION_PATTERN.search(lower) or (EATING_PATTERN.search(lower) and is_question):
        return _result(Intent.NUTRITION, 0.85, extracted, "nutrition")

    return None
