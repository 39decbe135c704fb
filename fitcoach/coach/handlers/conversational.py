"""Canned replies for greetings and off-topic messages."""

from ...classifier.models import ClassificationResult, Intent
from ..models import CoachResponse, UserContext
from .base import BaseHandler, HandlerDeps

GREETINGS = (
    "Hey{name}! Ready to train?",
    "What's up{name}! What are we working on today?",
    "Hey{name}! How can I help you today?",
)

OFF_TOPIC_REPLIES = (
    "I'm your fitness coach, so I'm best at helping with workouts, nutrition, and training. What can I help you with?",
    "That's outside my expertise! I specialize in fitness and training. Got any workout questions?",
    "I'm all about fitness! Let me know if you want to talk workouts, nutrition, or recovery.",
)


class GreetingHandler(BaseHandler):
    name = "greeting"
    intents = (Intent.GREETING,)

    async def handle(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> CoachResponse:
        name = f", {context.name}" if context.name else ""
        return CoachResponse(
            message=deps.rng.choice(GREETINGS).format(name=name),
            intent=Intent.GREETING,
        )


class OffTopicHandler(BaseHandler):
    name = "off_topic"
    intents = (Intent.OFF_TOPIC,)

    async def handle(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> CoachResponse:
        return CoachResponse(message=deps.rng.choice(OFF_TOPIC_REPLIES), intent=Intent.OFF_TOPIC)
