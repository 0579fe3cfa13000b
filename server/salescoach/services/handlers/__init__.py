"""Intent handlers and the dispatcher that routes to them.

Every handler has the signature ``(ctx, params, message) -> HandlerResult``
and converts its own failures into a failed result.
"""

import logging
from typing import Mapping, Optional

from salescoach.schemas.intent import HandlerParams, HandlerResult, Intent
from salescoach.services.handlers.agent_stats import handle_agent_stats
from salescoach.services.handlers.base import HandlerContext, HandlerFn
from salescoach.services.handlers.coaching import handle_coaching
from salescoach.services.handlers.general import handle_general
from salescoach.services.handlers.get_transcript import handle_get_transcript
from salescoach.services.handlers.list_calls import handle_list_calls
from salescoach.services.handlers.search_calls import handle_search_calls
from salescoach.services.handlers.team_summary import handle_team_summary

logger = logging.getLogger(__name__)

HANDLERS: dict[Intent, HandlerFn] = {
    Intent.LIST_CALLS: handle_list_calls,
    Intent.AGENT_STATS: handle_agent_stats,
    Intent.TEAM_SUMMARY: handle_team_summary,
    Intent.GET_TRANSCRIPT: handle_get_transcript,
    Intent.SEARCH_CALLS: handle_search_calls,
    Intent.COACHING: handle_coaching,
    Intent.GENERAL: handle_general,
}


class HandlerDispatcher:
    """Routes an intent to its handler.

    The handler table must cover every Intent; an incomplete table is
    rejected at construction rather than at dispatch time.
    """

    def __init__(self, ctx: HandlerContext, handlers: Optional[Mapping[Intent, HandlerFn]] = None):
        handlers = dict(HANDLERS if handlers is None else handlers)
        missing = [intent.value for intent in Intent if intent not in handlers]
        if missing:
            raise ValueError(f"No handler registered for: {', '.join(missing)}")
        self.ctx = ctx
        self.handlers = handlers

    async def dispatch(self, intent: Intent, params: HandlerParams, message: str) -> HandlerResult:
        handler = self.handlers[intent]
        logger.debug(f"Dispatching {intent.value} to {handler.__name__}")
        return await handler(self.ctx, params, message)


__all__ = ["HANDLERS", "HandlerContext", "HandlerDispatcher"]
