"""
application.intents.matcher - Ordered, first-match-wins intent rules.

An IntentRule pairs a compiled pattern (and an optional guard on the turn)
with an async handler. IntentMatcher walks its rules top to bottom:

    - a rule whose guard fails or whose pattern does not match is skipped
    - the first rule whose handler returns a reply wins
    - a handler may return None to decline, e.g. restock-by-name when no
      item matches, so that a looser rule further down can take the turn

Rule order is therefore the priority policy: specialized phrasings are
listed before the generic catch-alls.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

from application.context import SessionContext
from domain.models import AssistantReply, Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Turn:
    """One user message plus everything a rule may look at."""
    text: str
    ctx: SessionContext
    session: Optional[Session] = None

    @property
    def lower(self) -> str:
        return self.text.lower()

    @property
    def client_id(self) -> str:
        return self.ctx.client_id


Handler = Callable[[Turn, "re.Match[str]"], Awaitable[Optional[AssistantReply]]]
Guard = Callable[[Turn], bool]


@dataclass(frozen=True)
class IntentRule:
    name: str
    pattern: re.Pattern
    handler: Handler
    guard: Optional[Guard] = None

    def match(self, turn: Turn) -> Optional[re.Match]:
        if self.guard is not None and not self.guard(turn):
            return None
        return self.pattern.search(turn.text)


def rule(name: str, pattern: str, handler: Handler, guard: Optional[Guard] = None) -> IntentRule:
    """Compile pattern case-insensitively and build an IntentRule."""
    return IntentRule(name, re.compile(pattern, re.IGNORECASE), handler, guard)


class IntentMatcher:
    """Evaluate rules in order; the first non-declining handler wins."""

    def __init__(self, rules: Sequence[IntentRule]):
        self._rules = list(rules)

    @property
    def rule_names(self) -> list[str]:
        return [r.name for r in self._rules]

    async def match(self, turn: Turn) -> Optional[AssistantReply]:
        for intent in self._rules:
            found = intent.match(turn)
            if found is None:
                continue
            reply = await intent.handler(turn, found)
            if reply is None:
                logger.debug("Rule %s declined: %s", intent.name, turn.text[:80])
                continue
            logger.info("Rule %s handled [%s]: %s", intent.name, turn.client_id, turn.text[:80])
            return reply
        return None
