"""Semantic and plain-text search over transcript chunks."""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from salescoach.models.call import Call, TranscriptChunk
from salescoach.schemas.call import SearchHit
from salescoach.services.embedding_client import cosine_similarity

logger = logging.getLogger(__name__)

MAX_EXCERPT_CHARS = 300


def _excerpt(text: str) -> str:
    if len(text) > MAX_EXCERPT_CHARS:
        return text[:MAX_EXCERPT_CHARS] + "..."
    return text


class SearchStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _chunks(
        self, agent_user_id: Optional[str], start_date: date, end_date: date
    ) -> list[TranscriptChunk]:
        async with self.session_factory() as db:
            query = (
                select(TranscriptChunk)
                .join(Call, Call.call_id == TranscriptChunk.call_id)
                .where(Call.call_date >= start_date, Call.call_date <= end_date)
                .options(selectinload(TranscriptChunk.call).selectinload(Call.agent))
            )
            if agent_user_id:
                query = query.where(Call.agent_user_id == agent_user_id)
            result = await db.execute(query)
            return list(result.scalars().all())

    @staticmethod
    def _hit(chunk: TranscriptChunk, similarity: Optional[float]) -> SearchHit:
        call = chunk.call
        return SearchHit(
            call_id=call.call_id,
            agent_user_id=call.agent_user_id,
            agent_name=call.agent.first_name if call.agent else None,
            call_date=call.call_date,
            excerpt=_excerpt(chunk.text),
            similarity=similarity,
        )

    async def semantic_search(
        self,
        query_embedding: list[float],
        start_date: date,
        end_date: date,
        agent_user_id: Optional[str] = None,
        limit: int = 10,
        similarity_threshold: float = 0.5,
    ) -> list[SearchHit]:
        """Rank chunks by cosine similarity, keeping the best chunk per call."""
        best_per_call: dict[str, tuple[float, TranscriptChunk]] = {}
        for chunk in await self._chunks(agent_user_id, start_date, end_date):
            if not chunk.embedding or len(chunk.embedding) != len(query_embedding):
                continue
            score = cosine_similarity(query_embedding, chunk.embedding)
            if score < similarity_threshold:
                continue
            current = best_per_call.get(chunk.call_id)
            if current is None or score > current[0]:
                best_per_call[chunk.call_id] = (score, chunk)

        ranked = sorted(best_per_call.values(), key=lambda pair: pair[0], reverse=True)
        return [self._hit(chunk, round(score, 4)) for score, chunk in ranked[:limit]]

    async def text_search(
        self,
        query: str,
        start_date: date,
        end_date: date,
        agent_user_id: Optional[str] = None,
        limit: int = 10,
    ) -> list[SearchHit]:
        needle = query.strip().lower()
        if not needle:
            return []

        hits: list[SearchHit] = []
        seen: set[str] = set()
        for chunk in await self._chunks(agent_user_id, start_date, end_date):
            if chunk.call_id in seen or needle not in chunk.text.lower():
                continue
            seen.add(chunk.call_id)
            hits.append(self._hit(chunk, None))
            if len(hits) >= limit:
                break
        return hits
