from __future__ import annotations

import logging

from .completion import find_nearby, join_phrase, tokenize
from .pipeline import BazEngine

logger = logging.getLogger(__name__)


class Responder:
    """Chat-message adapter: answers messages that mention the trigger word."""

    def __init__(self, engine: BazEngine, trigger: str | None = None, *, learn: bool = True) -> None:
        self.engine = engine
        self.trigger = trigger or engine.settings.trigger
        self.learn_enabled = learn

    def mentions(self, message: str) -> bool:
        return bool(find_nearby(self.trigger, tokenize(message)))

    def reply(self, message: str) -> str | None:
        """Return a generated reply, or None when the trigger is absent or nothing came out."""
        contexts = find_nearby(self.trigger, tokenize(message))
        if not contexts:
            return None
        text = join_phrase(self.engine.completion.complete_nearby(contexts))
        return text or None

    def learn(self, message: str) -> bool:
        tokens = tokenize(message)
        if not tokens:
            return False
        self.engine.add_phrase(tokens)
        return True

    def handle(self, message: str) -> str | None:
        """Reply to messages that mention the trigger; learn from the rest."""
        if self.mentions(message):
            return self.reply(message)
        if self.learn_enabled:
            self.learn(message)
            logger.debug("learned %r", message)
        return None
