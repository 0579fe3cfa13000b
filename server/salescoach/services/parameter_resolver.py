"""Turns an IntentClassification into handler-ready HandlerParams."""

import logging
from datetime import date, timedelta
from typing import Callable, Optional

from salescoach.schemas.intent import ChatContext, HandlerParams, IntentClassification

logger = logging.getLogger(__name__)


def get_date_range(days_back: int, today: Optional[date] = None) -> tuple[date, date]:
    """Inclusive [today - days_back, today] range."""
    end = today or date.today()
    return end - timedelta(days=days_back), end


class ParameterResolver:
    """Resolves agent names to ids and relative day counts to absolute dates.

    An unmatched name is recorded on the params rather than raised, so the
    handlers that need an agent can answer with "agent not found" while
    the others (search, team summary) carry on unscoped.
    """

    def __init__(self, agent_directory, today: Callable[[], date] = date.today):
        self.agent_directory = agent_directory
        self.today = today

    async def resolve(
        self,
        classification: IntentClassification,
        context: Optional[ChatContext] = None,
    ) -> HandlerParams:
        context = context or ChatContext()

        agent_id = context.agent_user_id
        agent_name = classification.agent_name
        unresolved_agent_name = None
        resolution_error = None

        if agent_name and not agent_id:
            try:
                match = await self.agent_directory.resolve_by_name(agent_name)
            except Exception as e:
                logger.error(f"Agent name lookup failed for '{agent_name}': {e}")
                match = None
                resolution_error = f"Failed to resolve agent name: {e}"
            if match:
                agent_id = match.agent_user_id
                agent_name = match.first_name
            else:
                unresolved_agent_name = agent_name

        if context.start_date and context.end_date:
            start_date, end_date = context.start_date, context.end_date
        else:
            start_date, end_date = get_date_range(classification.days_back, self.today())

        return HandlerParams(
            agent_id=agent_id,
            agent_name=agent_name,
            unresolved_agent_name=unresolved_agent_name,
            resolution_error=resolution_error,
            days_back=classification.days_back,
            start_date=start_date,
            end_date=end_date,
            call_id=classification.call_id or context.call_id,
            search_query=classification.search_query,
            min_duration_minutes=classification.min_duration_minutes,
            department=context.department,
            limit=context.limit,
        )
