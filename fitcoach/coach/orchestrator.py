"""Coach orchestrator: classify, route, respond."""

import time
from typing import AsyncIterator, Optional

import structlog

from ..classifier.fallback import IntentClassifier
from ..classifier.models import ClassificationResult, Intent
from .handlers import HandlerDeps
from .models import CoachResponse, StreamChunk, UserContext
from .registry import HandlerRegistry

logger = structlog.get_logger()

GENERIC_ERROR_MESSAGE = "Sorry, something went wrong on my end. Could you try that again?"


class CoachOrchestrator:
    """Public entry point for a conversational turn."""

    def __init__(
        self,
        classifier: IntentClassifier,
        deps: HandlerDeps,
        registry: Optional[HandlerRegistry] = None,
    ) -> None:
        self.classifier = classifier
        self.deps = deps
        self.registry = registry or HandlerRegistry()

    async def _classify(self, message: str, context: UserContext) -> ClassificationResult:
        return await self.classifier.classify_message(message, context.session_summary())

    async def process_message(self, message: str, context: UserContext) -> CoachResponse:
        """Handle one message and return the response. Never raises."""
        start = time.monotonic()
        intent = Intent.GENERAL_FITNESS
        handler_name = None
        try:
            classification = await self._classify(message, context)
            intent = classification.intent
            handler = self.registry.get(intent)
            handler_name = handler.name
            response = await handler.handle(message, classification, context, self.deps)
        except Exception:
            logger.exception(
                "Message processing failed",
                user_id=context.user_id,
                intent=intent.value,
                handler=handler_name,
            )
            return CoachResponse(message=GENERIC_ERROR_MESSAGE, intent=intent)

        logger.info(
            "Message processed",
            user_id=context.user_id,
            intent=intent.value,
            confidence=classification.confidence,
            used_pattern=classification.used_pattern,
            handler=handler_name,
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )
        return response

    async def stream_message(
        self, message: str, context: UserContext
    ) -> AsyncIterator[StreamChunk]:
        """Yield text chunks for knowledge intents, always ending with ``final``."""
        intent = Intent.GENERAL_FITNESS
        try:
            classification = await self._classify(message, context)
            intent = classification.intent
            handler = self.registry.get(intent)
            async for item in handler.stream(message, classification, context, self.deps):
                yield item
                if item.final is not None:
                    return
        except Exception:
            logger.exception("Message streaming failed", user_id=context.user_id, intent=intent.value)
        yield StreamChunk(final=CoachResponse(message=GENERIC_ERROR_MESSAGE, intent=intent))
