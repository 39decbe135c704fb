"""Prompt builders for the knowledge handlers."""

from typing import Optional

from ..classifier.models import Intent
from .models import UserContext

HISTORY_TURNS = 5

COACH_SYSTEM_PROMPT = """\
You are an AI fitness coach. Users talk to you in a chat interface for all \
their fitness needs.

PERSONALITY:
- Conversational and supportive (use contractions naturally)
- Expert knowledge without being condescending
- Celebrate progress, be constructive on setbacks
- Keep responses concise (2-4 sentences) unless more detail is needed
- Reference the user's specific situation when relevant

USER CONTEXT:
{user_context}

CAPABILITIES:
- Log workouts via voice or text
- Answer exercise and form questions
- Suggest exercise substitutions
- Create and adjust programs
- Provide nutrition guidance
- Help with recovery and injury prevention
- Track running and cardio
- Log CrossFit WODs

Always be helpful and keep the user engaged with their fitness journey."""

PROGRAMMING_ROLE = """\
You are helping with workout programming. You can:
- Suggest workout splits
- Create individual workout plans
- Recommend exercises for specific goals
- Adjust programs based on user feedback

Be specific with exercise recommendations. Include sets, reps, and rest \
periods when suggesting workouts."""

NUTRITION_ROLE = """\
You are helping with nutrition questions. You can:
- Provide general macro guidance
- Discuss protein timing
- Talk about pre/post workout nutrition
- Give hydration advice

Manual food logging is not supported. For specific calorie or macro targets, \
recommend they check their health app data."""

RECOVERY_ROLE = """\
You are helping with recovery and potential injury concerns. You can:
- Suggest rest or deload
- Recommend mobility work
- Suggest exercise modifications
- Advise when to see a professional

IMPORTANT: For actual pain or injury, always recommend consulting a \
healthcare professional. Be cautious and prioritize safety."""

RUNNING_ROLE = """\
You are helping with running and cardio. You can:
- Suggest running programs (5K, 10K, etc.)
- Discuss pacing strategies
- Talk about heart rate zones
- Advise on running form
- Recommend cross-training"""

ROLE_PROMPTS: dict[Intent, str] = {
    Intent.PROGRAM_REQUEST: PROGRAMMING_ROLE,
    Intent.PROGRAM_QUESTION: PROGRAMMING_ROLE,
    Intent.NUTRITION: NUTRITION_ROLE,
    Intent.RECOVERY: RECOVERY_ROLE,
    Intent.RUNNING: RUNNING_ROLE,
}


def _user_context_lines(context: UserContext) -> str:
    lines = [
        f"- Name: {context.name or 'User'}",
        f"- Experience: {context.experience_level or 'Unknown'}",
        f"- Goals: {', '.join(context.goals) or 'Not specified'}",
        f"- Injuries/limitations: {', '.join(context.injuries) or 'None'}",
        f"- Preferred equipment: {', '.join(context.preferred_equipment) or 'Full gym'}",
    ]
    if context.recent_prs:
        prs = ", ".join(
            f"{pr.get('exercise')}: {pr.get('weight')}x{pr.get('reps')}"
            for pr in context.recent_prs
        )
        lines.append(f"- Recent PRs: {prs}")
    if context.active_workout_id:
        lines.append("- Currently in a workout")
    if context.current_exercise:
        lines.append(f"- Current exercise: {context.current_exercise}")
    return "\n".join(lines)


def build_system_prompt(context: UserContext, intent: Optional[Intent] = None) -> str:
    """Coach persona plus the role section for ``intent``, if it has one."""
    prompt = COACH_SYSTEM_PROMPT.format(user_context=_user_context_lines(context))
    role = ROLE_PROMPTS.get(intent) if intent else None
    if role:
        prompt = f"{prompt}\n\n{role}"
    return prompt


def build_user_prompt(message: str, context: UserContext, rag_context: str = "") -> str:
    """Knowledge block, recent turns and the message itself."""
    parts = []
    if rag_context:
        parts.append(f"RELEVANT KNOWLEDGE:\n{rag_context}")

    history = context.conversation_history[-HISTORY_TURNS:]
    if history:
        turns = "\n".join(f"{turn.get('role')}: {turn.get('content')}" for turn in history)
        parts.append(f"RECENT CONVERSATION:\n{turns}")

    parts.append(f"USER: {message}")
    return "\n\n".join(parts)
