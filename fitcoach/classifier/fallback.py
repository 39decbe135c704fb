"""Hybrid regex + LLM intent classifier.

The pattern stage answers most messages in well under a millisecond. Only
inconclusive messages reach the completion service, and every failure on
that path degrades to a usable ClassificationResult instead of raising.
"""

import asyncio
import hashlib
import json
import re
import time
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from ..llm.interface import CompletionService
from .models import (
    INTENT_DESCRIPTIONS,
    ClassificationResult,
    ExtractedData,
    Intent,
    Matched,
)
from .patterns import DEFAULT_CONFIDENCE_THRESHOLD, match_patterns

logger = structlog.get_logger()

CODE_FENCE_PATTERN = re.compile(r"```(?:json)?\s*|\s*```", re.I)

CLASSIFIER_SYSTEM_PROMPT = """\
You are a fitness coach's message classifier. Analyze the user message and classify its intent.

INTENTS:
{intents}

KEY DISTINCTION:
- program_request = single workout for TODAY (quick)
- full_program = multi-week training plan (needs questionnaire)

Extract any relevant data from the message.

Respond with JSON only:
{{
  "intent": "<intent>",
  "confidence": 0.0-1.0,
  "extractedData": {{
    "exercise": string | null,
    "weight": number | null,
    "weightUnit": "lbs" | "kg" | null,
    "reps": number | null,
    "sets": number | null,
    "rpe": number | null,
    "wodName": string | null,
    "wodTime": number | null,
    "wodRounds": number | null,
    "wodReps": number | null,
    "bodyPart": string | null,
    "muscleGroup": string | null
  }}
}}"""


def build_classifier_prompt() -> str:
    """System prompt with the enumerated intent list."""
    intents = "\n".join(
        f"- {intent.value}: {description}"
        for intent, description in INTENT_DESCRIPTIONS.items()
    )
    return CLASSIFIER_SYSTEM_PROMPT.format(intents=intents)


def summarize_context(context: Optional[dict[str, Any]]) -> str:
    """Compact session summary embedded in the classification prompt."""
    if not context:
        return ""
    last_weight = context.get("last_weight")
    unit = context.get("last_weight_unit") or ""
    lines = [
        f"Current exercise: {context.get('current_exercise') or 'none'}",
        f"Last weight: {last_weight if last_weight is not None else 'unknown'} {unit}".rstrip(),
        f"Active workout: {'yes' if context.get('active_workout_id') else 'no'}",
    ]
    return "\n".join(lines)


def strip_code_fences(raw: str) -> str:
    """Remove markdown code fences around a JSON payload."""
    return CODE_FENCE_PATTERN.sub("", raw.strip()).strip()


def parse_classification(raw: str) -> ClassificationResult:
    """Parse and validate the completion service's JSON output.

    Raises:
        ValueError: If the payload is not a valid classification.
    """
    data = json.loads(strip_code_fences(raw))
    if not isinstance(data, dict):
        raise ValueError("Classification payload is not an object")

    raw_intent = data.get("intent")
    if raw_intent is None:
        raise ValueError("Classification is missing an intent")
    try:
        intent = Intent(raw_intent)
    except ValueError as exc:
        raise ValueError(f"Unknown intent: {raw_intent!r}") from exc

    raw_confidence = data.get("confidence")
    confidence = 0.5 if raw_confidence is None else float(raw_confidence)
    confidence = min(max(confidence, 0.0), 1.0)

    extracted_raw = data.get("extractedData") or {}
    if not isinstance(extracted_raw, dict):
        raise ValueError("extractedData is not an object")
    try:
        extracted = ExtractedData.model_validate(extracted_raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid extractedData: {exc}") from exc

    return ClassificationResult(
        intent=intent,
        confidence=confidence,
        extracted_data=extracted,
        used_pattern=False,
    )


class IntentClassifier:
    """Pattern-first classifier with a completion-service fallback."""

    def __init__(
        self,
        completion: Optional[CompletionService] = None,
        threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        timeout_seconds: float = 5.0,
        temperature: float = 0.2,
    ) -> None:
        self._completion = completion
        self._threshold = threshold
        self._timeout = timeout_seconds
        self._temperature = temperature
        self._system_prompt = build_classifier_prompt()

    async def classify_message(
        self,
        message: str,
        context: Optional[dict[str, Any]] = None,
    ) -> ClassificationResult:
        """Classify a message; never raises."""
        start = time.monotonic()

        outcome = match_patterns(message, context, threshold=self._threshold)
        if isinstance(outcome, Matched):
            logger.debug(
                "Pattern classification",
                intent=outcome.result.intent.value,
                confidence=outcome.result.confidence,
                pattern=outcome.result.pattern_name,
                elapsed_ms=int((time.monotonic() - start) * 1000),
            )
            return outcome.result

        best_guess = outcome.best_guess
        logger.info(
            "Classifier fallback required",
            message_hash=hashlib.sha256(message.encode()).hexdigest()[:16],
            preview=message[:50],
            best_guess=best_guess.intent.value if best_guess else None,
        )

        result = await self._classify_with_llm(message, context)
        if result is not None:
            logger.info(
                "LLM classification",
                intent=result.intent.value,
                confidence=result.confidence,
                elapsed_ms=int((time.monotonic() - start) * 1000),
            )
            return result

        if best_guess is not None:
            logger.info(
                "Using low-confidence pattern result",
                intent=best_guess.intent.value,
                confidence=best_guess.confidence,
            )
            return best_guess

        return ClassificationResult(
            intent=Intent.GENERAL_FITNESS,
            confidence=0.3,
            extracted_data=ExtractedData(),
            used_pattern=False,
        )

    async def _classify_with_llm(
        self,
        message: str,
        context: Optional[dict[str, Any]],
    ) -> Optional[ClassificationResult]:
        """Ask the completion service; None on any failure."""
        if not self._completion:
            return None

        user_prompt = f'{summarize_context(context)}\n\nMESSAGE: "{message}"'.lstrip()
        try:
            raw = await asyncio.wait_for(
                self._completion.complete(
                    system_prompt=self._system_prompt,
                    user_prompt=user_prompt,
                    temperature=self._temperature,
                    max_tokens=300,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("LLM classification timed out", timeout=self._timeout)
            return None
        except Exception as exc:
            logger.warning("LLM classification failed", error=str(exc))
            return None

        try:
            return parse_classification(raw)
        except (ValueError, TypeError) as exc:
            logger.warning("LLM classification parse error", error=str(exc))
            return None
