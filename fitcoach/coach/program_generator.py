"""Multi-week program generation."""

import asyncio
import json
from typing import Any, Optional, Protocol

import structlog
from pydantic import BaseModel, Field

from ..classifier.fallback import strip_code_fences
from ..llm.interface import CompletionService
from .models import UserContext

logger = structlog.get_logger()

PROGRAM_SYSTEM_PROMPT = """\
You design structured multi-week training programs.
Use the intake answers and athlete profile to produce a program outline.

Respond with JSON only:
{
  "name": string,
  "program_type": "strength" | "running" | "hybrid" | "crossfit",
  "primary_goal": string,
  "duration_weeks": integer (1-52),
  "days_per_week": integer (1-7),
  "weeks": [{"week": integer, "focus": string, "sessions": [string]}]
}"""


class GeneratedProgram(BaseModel):
    """Validated program outline."""

    name: str = Field(min_length=1)
    program_type: str
    primary_goal: str = ""
    duration_weeks: int = Field(ge=1, le=52)
    days_per_week: int = Field(ge=1, le=7)
    weeks: list[dict[str, Any]] = Field(default_factory=list)


class ProgramGenerator(Protocol):
    """Turns intake answers into a program outline."""

    async def generate(
        self, questionnaire: dict[str, Any], context: UserContext
    ) -> GeneratedProgram:
        ...


class CompletionProgramGenerator:
    """ProgramGenerator backed by the completion service."""

    def __init__(
        self,
        completion: CompletionService,
        temperature: float = 0.8,
        max_tokens: int = 1500,
        timeout_seconds: Optional[float] = 60.0,
    ) -> None:
        self._completion = completion
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout_seconds

    async def generate(
        self, questionnaire: dict[str, Any], context: UserContext
    ) -> GeneratedProgram:
        """Ask for a JSON outline and validate it.

        Raises:
            CompletionError: If the completion call fails.
            asyncio.TimeoutError: If it exceeds the timeout.
            ValueError: If the reply is not a valid program.
        """
        profile = {
            "experience_level": context.experience_level,
            "goals": context.goals,
            "injuries": context.injuries,
            "preferred_equipment": context.preferred_equipment,
        }
        user_prompt = (
            f"INTAKE:\n{json.dumps(questionnaire, default=str, indent=2)}\n\n"
            f"PROFILE:\n{json.dumps(profile, indent=2)}"
        )
        raw = await asyncio.wait_for(
            self._completion.complete(
                system_prompt=PROGRAM_SYSTEM_PROMPT,
                user_prompt=user_prompt,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            ),
            timeout=self._timeout,
        )
        program = GeneratedProgram.model_validate_json(strip_code_fences(raw))
        logger.info(
            "Program generated",
            user_id=context.user_id,
            name=program.name,
            weeks=program.duration_weeks,
        )
        return program
