"""Exception hierarchy for the coaching core.

Collaborator adapters (completion, search, storage) translate SDK-level
errors into these types. Handlers catch them and turn them into
conversational replies, so none of them should ever reach a caller of
``CoachOrchestrator``.
"""

from typing import Optional


class FitCoachError(Exception):
    """Base error for the coaching core."""


class ConfigurationError(FitCoachError):
    """Raised when settings are missing or inconsistent."""


class CompletionError(FitCoachError):
    """Raised when the completion service fails or times out."""

    def __init__(self, message: str, model: Optional[str] = None) -> None:
        self.model = model
        super().__init__(message)


class SearchError(FitCoachError):
    """Raised when a knowledge partition query fails."""

    def __init__(self, partition: str, message: str) -> None:
        self.partition = partition
        super().__init__(f"Search failed for partition '{partition}': {message}")


class StorageError(FitCoachError):
    """Raised when the persistence store cannot complete an operation."""
