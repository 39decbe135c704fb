"""Search query construction.

Raw user phrasing retrieves poorly against a technical knowledge corpus, so
the query is rebuilt from the extracted entities plus a fixed set of domain
keywords per intent.
"""

import re

from ..classifier.models import ExtractedData, Intent

MAX_QUERY_TERMS = 6
MAX_FALLBACK_CHARS = 100

_PUNCTUATION = re.compile(r"[?!.,]")


def clean_message(message: str) -> str:
    """Lower-cased message without punctuation, capped at 100 chars."""
    return _PUNCTUATION.sub("", message.lower())[:MAX_FALLBACK_CHARS]


def build_optimized_query(
    message: str,
    intent: Intent,
    extracted: ExtractedData,
) -> str:
    """Build the search query for a message."""
    lower = message.lower()
    terms: list[str] = []

    if extracted.exercise:
        terms.append(extracted.exercise)
        if intent == Intent.EXERCISE_QUESTION:
            terms.extend(["technique", "form", "cues"])

    if extracted.body_part:
        terms.append(extracted.body_part)
        if intent == Intent.RECOVERY:
            terms.extend(["pain", "recovery", "treatment"])

    if intent == Intent.EXERCISE_QUESTION:
        if re.search(r"muscles?|target|work", lower):
            terms.extend(["muscles", "targeted", "activation"])
        if re.search(r"form|technique|proper", lower):
            terms.extend(["setup", "execution", "cues"])

    elif intent == Intent.NUTRITION:
        if "protein" in lower:
            terms.extend(["protein", "intake", "requirements"])
        if re.search(r"pre[-\s]?workout", lower):
            terms.extend(["pre-workout", "timing", "energy"])
        if re.search(r"post[-\s]?workout", lower):
            terms.extend(["post-workout", "recovery", "nutrition"])
        if re.search(r"muscle|build|gain", lower):
            terms.extend(["muscle building", "hypertrophy", "nutrition"])

    elif intent == Intent.RECOVERY:
        terms.extend(["recovery", "injury", "prevention"])
        if "rest" in lower:
            terms.extend(["rest", "deload"])

    elif intent == Intent.PROGRAM_REQUEST:
        if "push" in lower:
            terms.extend(["push", "chest", "shoulders", "triceps"])
        if "pull" in lower:
            terms.extend(["pull", "back", "biceps"])
        if "leg" in lower:
            terms.extend(["legs", "squat", "lower body"])
        if "upper" in lower:
            terms.extend(["upper body", "pressing", "pulling"])
        terms.extend(["workout", "programming"])

    elif intent in (Intent.RUNNING, Intent.RUNNING_PROGRAM):
        distance = re.search(r"half[-\s]?marathon|marathon|10k|5k", lower)
        if distance:
            terms.append(distance.group(0))
        if re.search(r"pace|speed|faster", lower):
            terms.extend(["pacing", "tempo"])
        if re.search(r"heart\s*rate|zone", lower):
            terms.extend(["heart rate", "zones"])
        terms.extend(["running", "training"])

    if not terms:
        return clean_message(message)

    return " ".join(terms[:MAX_QUERY_TERMS])
