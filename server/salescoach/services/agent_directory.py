"""Agent lookups, including fuzzy first-name resolution."""

import logging
from difflib import SequenceMatcher
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from salescoach.models.agent import Agent
from salescoach.schemas.call import AgentRecord, ResolvedAgent

logger = logging.getLogger(__name__)


def name_similarity(query: str, candidate: str) -> float:
    """Score how well a typed (possibly partial) name matches a first name."""
    q = query.strip().lower()
    c = candidate.strip().lower()
    if not q or not c:
        return 0.0
    if q == c:
        return 1.0
    if c.startswith(q):
        return 0.9
    return SequenceMatcher(None, q, c).ratio()


class AgentDirectory:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], match_threshold: float = 0.3):
        self.session_factory = session_factory
        self.match_threshold = match_threshold

    async def list_agents(self) -> list[AgentRecord]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Agent).where(Agent.is_active.is_(True)).order_by(Agent.first_name)
            )
            return [AgentRecord.model_validate(a) for a in result.scalars().all()]

    async def get_agent_by_id(self, agent_user_id: str) -> Optional[AgentRecord]:
        async with self.session_factory() as db:
            agent = await db.get(Agent, agent_user_id)
            return AgentRecord.model_validate(agent) if agent else None

    async def resolve_by_name(self, partial_name: str) -> Optional[ResolvedAgent]:
        """Return the single best fuzzy match for a name, or None."""
        agents = await self.list_agents()

        best: Optional[ResolvedAgent] = None
        for agent in agents:
            score = name_similarity(partial_name, agent.first_name)
            if score < self.match_threshold:
                continue
            if best is None or score > best.similarity_score:
                best = ResolvedAgent(
                    agent_user_id=agent.agent_user_id,
                    first_name=agent.first_name,
                    similarity_score=round(score, 3),
                )

        if best:
            logger.info(
                f"Resolved agent name '{partial_name}' -> {best.first_name} "
                f"({best.agent_user_id}, score={best.similarity_score})"
            )
        else:
            logger.info(f"No agent matched name '{partial_name}'")
        return best
