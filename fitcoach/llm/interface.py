"""Completion service interface.

The coaching core only needs "prompt in, text out". This Protocol keeps the
classifier, handlers and program generator independent of any particular SDK.
"""

from typing import AsyncIterator, Protocol


class CompletionService(Protocol):
    """Protocol every completion backend implements."""

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> str:
        """Return the full completion text.

        Raises:
            CompletionError: If the backend fails.
        """
        ...

    def stream(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> AsyncIterator[str]:
        """Yield completion text chunks as they arrive."""
        ...
