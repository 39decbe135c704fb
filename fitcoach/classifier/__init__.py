"""Intent classification: regex fast path plus completion-service fallback."""

from .fallback import IntentClassifier, parse_classification
from .models import (
    ClassificationResult,
    ExtractedData,
    Intent,
    Matched,
    NeedsEscalation,
)
from .patterns import classify_with_patterns, match_patterns

__all__ = [
    "ClassificationResult",
    "ExtractedData",
    "Intent",
    "IntentClassifier",
    "Matched",
    "NeedsEscalation",
    "classify_with_patterns",
    "match_patterns",
    "parse_classification",
]
