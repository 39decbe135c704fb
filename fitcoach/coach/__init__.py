"""Conversational coach: handlers, routing and the public orchestrator."""

from .factory import Coach, create_coach
from .models import CoachResponse, StreamChunk, UserContext
from .orchestrator import CoachOrchestrator
from .program_generator import CompletionProgramGenerator, GeneratedProgram, ProgramGenerator
from .registry import HandlerRegistry

__all__ = [
    "Coach",
    "CoachOrchestrator",
    "CoachResponse",
    "CompletionProgramGenerator",
    "GeneratedProgram",
    "HandlerRegistry",
    "ProgramGenerator",
    "StreamChunk",
    "UserContext",
    "create_coach",
]
