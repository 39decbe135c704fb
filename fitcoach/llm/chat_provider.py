"""OpenAI-compatible completion provider.

Uses the openai SDK, which also speaks to DeepSeek, xAI and most local
gateways through ``base_url``.
"""

import time
from dataclasses import dataclass
from typing import AsyncIterator, Optional

import structlog
from openai import AsyncOpenAI, OpenAIError

from ..exceptions import CompletionError

logger = structlog.get_logger()


@dataclass
class ChatResponse:
    """Response from a chat completion."""

    content: str
    model: str
    input_tokens: int
    output_tokens: int
    duration_ms: int


class ChatProvider:
    """Completion service backed by an OpenAI-compatible chat endpoint."""

    def __init__(
        self,
        model: str,
        api_key: str,
        base_url: Optional[str] = None,
    ) -> None:
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.model = model

    async def chat(
        self,
        messages: list[dict[str, str]],
        model: Optional[str] = None,
        max_tokens: int = 500,
        temperature: float = 0.7,
    ) -> ChatResponse:
        """Send a chat completion request."""
        used_model = model or self.model
        start = time.monotonic()

        try:
            response = await self.client.chat.completions.create(
                model=used_model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except OpenAIError as exc:
            raise CompletionError(str(exc), model=used_model) from exc

        duration_ms = int((time.monotonic() - start) * 1000)
        choice = response.choices[0]
        usage = response.usage

        result = ChatResponse(
            content=choice.message.content or "",
            model=response.model or used_model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            duration_ms=duration_ms,
        )
        logger.debug(
            "Completion finished",
            model=result.model,
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
            duration_ms=duration_ms,
        )
        return result

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> str:
        """Single-turn completion returning plain text."""
        response = await self.chat(
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        return response.content

    async def stream(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> AsyncIterator[str]:
        """Stream a single-turn completion chunk by chunk."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
                stream=True,
            )
            async for event in response:
                if not event.choices:
                    continue
                delta = event.choices[0].delta.content
                if delta:
                    yield delta
        except OpenAIError as exc:
            raise CompletionError(str(exc), model=self.model) from exc
