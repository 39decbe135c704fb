"""Static intent -> handler table."""

from typing import Iterable, Optional

import structlog

from ..classifier.models import Intent
from ..exceptions import ConfigurationError
from .handlers import IntentHandler, default_handlers

logger = structlog.get_logger()


class HandlerRegistry:
    """Exhaustive mapping from every intent to exactly one handler.

    Built once; a missing or doubly claimed intent fails construction.
    """

    def __init__(self, handlers: Optional[Iterable[IntentHandler]] = None) -> None:
        table: dict[Intent, IntentHandler] = {}
        for handler in handlers if handlers is not None else default_handlers():
            for intent in handler.intents:
                if intent in table:
                    raise ConfigurationError(
                        f"Intent {intent.value} claimed by both "
                        f"{table[intent].name} and {handler.name}"
                    )
                table[intent] = handler

        missing = [intent.value for intent in Intent if intent not in table]
        if missing:
            raise ConfigurationError(f"No handler for intents: {', '.join(missing)}")

        self._table = table
        logger.debug("Handler registry built", handlers=sorted({h.name for h in table.values()}))

    def get(self, intent: Intent) -> IntentHandler:
        """Handler for ``intent``; unknown values fall back to general fitness."""
        return self._table.get(intent) or self._table[Intent.GENERAL_FITNESS]

    def list_handlers(self) -> list[IntentHandler]:
        """Distinct handlers in registration order."""
        return list(dict.fromkeys(self._table.values()))
