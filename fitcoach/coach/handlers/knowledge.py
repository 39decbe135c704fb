"""Knowledge handlers: RAG context plus a completion call.

All of them share one shape. Build the role prompt, fetch the knowledge
block for the intent, call the completion service under a timeout and
return its text verbatim. A failed or slow completion becomes an apology.
"""

import asyncio
from typing import AsyncIterator, Optional

import structlog

from ...classifier.models import ClassificationResult, ExtractedData, Intent
from ...exceptions import FitCoachError
from ...rag.indexes import get_enhanced_indexes
from ...rag.search import KnowledgeDocument
from ..models import CoachResponse, FormTips, Source, StreamChunk, UserContext
from ..prompts import build_system_prompt, build_user_prompt
from .base import BaseHandler, HandlerDeps

logger = structlog.get_logger()

APOLOGY_MESSAGE = (
    "Sorry, I'm having trouble answering that right now. "
    "Give me a moment and try again?"
)

FORM_TIP_DOCUMENTS = 10
FORM_TIP_CHARS = 200
FORM_TIP_LIMITS = {"setup": 3, "execution": 3, "breathing": 2, "common_mistakes": 3}


class KnowledgeHandler(BaseHandler):
    """Grounded completion for one or more knowledge intents."""

    def __init__(
        self,
        name: str,
        intents: tuple[Intent, ...],
        max_tokens: int = 500,
        rag_intent: Optional[Intent] = None,
    ) -> None:
        self.name = name
        self.intents = intents
        self.max_tokens = max_tokens
        self._rag_intent = rag_intent

    async def _prompts(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> tuple[str, str]:
        intent = self._rag_intent or classification.intent
        rag_context = await deps.retriever.get_rag_context(
            message, intent, classification.extracted_data
        )
        system_prompt = build_system_prompt(context, intent)
        user_prompt = build_user_prompt(message, context, rag_context)
        return system_prompt, user_prompt

    async def _complete(self, system_prompt: str, user_prompt: str, deps: HandlerDeps) -> Optional[str]:
        try:
            return await asyncio.wait_for(
                deps.completion.complete(
                    system_prompt=system_prompt,
                    user_prompt=user_prompt,
                    temperature=deps.coaching_temperature,
                    max_tokens=self.max_tokens,
                ),
                timeout=deps.completion_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Completion timed out", handler=self.name, timeout=deps.completion_timeout)
        except FitCoachError as exc:
            logger.warning("Completion failed", handler=self.name, error=str(exc))
        return None

    async def handle(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> CoachResponse:
        system_prompt, user_prompt = await self._prompts(message, classification, context, deps)
        text = await self._complete(system_prompt, user_prompt, deps)
        return CoachResponse(message=text or APOLOGY_MESSAGE, intent=classification.intent)

    async def stream(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> AsyncIterator[StreamChunk]:
        system_prompt, user_prompt = await self._prompts(message, classification, context, deps)
        chunks: list[str] = []
        iterator = deps.completion.stream(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            temperature=deps.coaching_temperature,
            max_tokens=self.max_tokens,
        ).__aiter__()

        while True:
            try:
                chunk = await asyncio.wait_for(iterator.__anext__(), timeout=deps.completion_timeout)
            except StopAsyncIteration:
                break
            except asyncio.TimeoutError:
                logger.warning("Completion stream timed out", handler=self.name)
                break
            except FitCoachError as exc:
                logger.warning("Completion stream failed", handler=self.name, error=str(exc))
                break
            chunks.append(chunk)
            yield StreamChunk(chunk=chunk)

        text = "".join(chunks)
        yield StreamChunk(
            final=CoachResponse(message=text or APOLOGY_MESSAGE, intent=classification.intent)
        )


def extract_form_tips(documents: list[KnowledgeDocument]) -> FormTips:
    """Sort coaching cues from technique documents into tip categories."""
    buckets: dict[str, list[str]] = {key: [] for key in FORM_TIP_LIMITS}
    for doc in documents:
        text = doc.text
        if not text:
            continue
        snippet = text[:FORM_TIP_CHARS]
        lower = text.lower()
        if "cue" in lower:
            if "setup" in lower or "position" in lower:
                buckets["setup"].append(snippet)
            elif "fault" in lower or "mistake" in lower:
                buckets["common_mistakes"].append(snippet)
            else:
                buckets["execution"].append(snippet)
            continue

        cue_type = str(doc.content.get("type") or "")
        if cue_type == "commonMistakes":
            cue_type = "common_mistakes"
        if cue_type in buckets:
            buckets[cue_type].append(snippet)

    return FormTips(
        **{
            key: list(dict.fromkeys(items))[: FORM_TIP_LIMITS[key]]
            for key, items in buckets.items()
        }
    )


class ExerciseQuestionHandler(KnowledgeHandler):
    """Exercise and form questions; attaches form tips for named exercises."""

    def __init__(self) -> None:
        super().__init__("exercise_question", (Intent.EXERCISE_QUESTION,))

    async def _form_tips(
        self, exercise: str, deps: HandlerDeps
    ) -> tuple[Optional[FormTips], list[Source]]:
        partitions = get_enhanced_indexes(Intent.EXERCISE_QUESTION, ExtractedData(exercise=exercise))
        documents = await deps.retriever.retrieve(
            f"{exercise} form technique cues",
            partitions,
            limit=FORM_TIP_DOCUMENTS,
            max_documents=FORM_TIP_DOCUMENTS,
        )
        tips = extract_form_tips(documents)
        sources = [
            Source(title=doc.title or doc.category, category=doc.category)
            for doc in documents[:3]
        ]
        return (None if tips.is_empty() else tips), sources

    async def handle(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> CoachResponse:
        response = await super().handle(message, classification, context, deps)
        exercise = classification.extracted_data.exercise
        if exercise:
            response.form_tips, sources = await self._form_tips(exercise, deps)
            response.sources = sources or None
        return response


def knowledge_handlers() -> list[KnowledgeHandler]:
    """The standard knowledge handler set."""
    return [
        ExerciseQuestionHandler(),
        KnowledgeHandler(
            "programming",
            (Intent.PROGRAM_REQUEST, Intent.PROGRAM_QUESTION),
            max_tokens=700,
            rag_intent=Intent.PROGRAM_REQUEST,
        ),
        KnowledgeHandler("nutrition", (Intent.NUTRITION,)),
        KnowledgeHandler("recovery", (Intent.RECOVERY,)),
        KnowledgeHandler("running", (Intent.RUNNING,)),
        KnowledgeHandler("general", (Intent.GENERAL_FITNESS,)),
    ]
