"""Read-only accessors over calls and transcripts."""

import logging
from collections import defaultdict
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from salescoach.models.agent import Agent
from salescoach.models.call import Call, CallTranscript
from salescoach.schemas.call import (
    AgentBreakdown,
    AgentPerformance,
    CallRecord,
    DailyCallCount,
    TeamSummary,
    TranscriptRecord,
    format_duration,
)

logger = logging.getLogger(__name__)


def _to_record(call: Call) -> CallRecord:
    return CallRecord(
        call_id=call.call_id,
        agent_user_id=call.agent_user_id,
        agent_name=call.agent.first_name if call.agent else None,
        call_date=call.call_date,
        total_duration_seconds=call.total_duration_seconds,
        total_duration_formatted=format_duration(call.total_duration_seconds),
        is_inbound_call=call.is_inbound_call,
        agent_talk_percentage=call.agent_talk_percentage,
        customer_talk_percentage=call.customer_talk_percentage,
        total_turns=call.total_turns,
    )


def _average(values: list[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return round(sum(present) / len(present), 1)


class CallStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _fetch_calls(self, *conditions, limit: Optional[int] = None) -> list[Call]:
        async with self.session_factory() as db:
            query = select(Call).where(*conditions).order_by(Call.call_date.desc(), Call.call_id)
            if limit:
                query = query.limit(limit)
            result = await db.execute(query)
            return list(result.scalars().all())

    async def get_call_by_id(self, call_id: str) -> Optional[CallRecord]:
        async with self.session_factory() as db:
            call = await db.get(Call, call_id)
            return _to_record(call) if call else None

    async def get_call_transcript(self, call_id: str) -> Optional[TranscriptRecord]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(CallTranscript)
                .where(CallTranscript.call_id == call_id)
                .options(selectinload(CallTranscript.call).selectinload(Call.agent))
            )
            transcript = result.scalar_one_or_none()
            if not transcript:
                return None
            call = transcript.call
            return TranscriptRecord(
                call_id=call_id,
                full_transcript=transcript.full_transcript,
                agent_name=call.agent.first_name if call.agent else None,
                call_date=call.call_date,
                total_duration_formatted=format_duration(call.total_duration_seconds),
                agent_talk_percentage=call.agent_talk_percentage,
                customer_talk_percentage=call.customer_talk_percentage,
            )

    async def get_agent_calls(
        self, agent_user_id: str, start_date: date, end_date: date, limit: int = 50
    ) -> list[CallRecord]:
        calls = await self._fetch_calls(
            Call.agent_user_id == agent_user_id,
            Call.call_date >= start_date,
            Call.call_date <= end_date,
            limit=limit,
        )
        return [_to_record(c) for c in calls]

    async def get_recent_calls(self, start_date: date, end_date: date, limit: int = 50) -> list[CallRecord]:
        calls = await self._fetch_calls(
            Call.call_date >= start_date,
            Call.call_date <= end_date,
            limit=limit,
        )
        return [_to_record(c) for c in calls]

    async def get_calls_by_duration(
        self, min_duration_seconds: float, start_date: date, end_date: date, limit: int = 50
    ) -> list[CallRecord]:
        calls = await self._fetch_calls(
            Call.total_duration_seconds >= min_duration_seconds,
            Call.call_date >= start_date,
            Call.call_date <= end_date,
            limit=limit,
        )
        return [_to_record(c) for c in calls]

    async def get_agent_performance(
        self, agent_user_id: str, start_date: date, end_date: date
    ) -> Optional[AgentPerformance]:
        calls = await self._fetch_calls(
            Call.agent_user_id == agent_user_id,
            Call.call_date >= start_date,
            Call.call_date <= end_date,
        )
        if not calls:
            return None

        total_duration = sum(c.total_duration_seconds for c in calls)
        avg_duration = total_duration / len(calls)
        inbound = sum(1 for c in calls if c.is_inbound_call)
        return AgentPerformance(
            agent_user_id=agent_user_id,
            total_calls=len(calls),
            total_duration_seconds=total_duration,
            avg_duration_seconds=round(avg_duration, 1),
            avg_duration_formatted=format_duration(avg_duration),
            avg_agent_talk_percentage=_average([c.agent_talk_percentage for c in calls]),
            avg_customer_talk_percentage=_average([c.customer_talk_percentage for c in calls]),
            inbound_calls=inbound,
            outbound_calls=len(calls) - inbound,
        )

    async def get_agent_daily_calls(
        self, agent_user_id: str, start_date: date, end_date: date
    ) -> list[DailyCallCount]:
        calls = await self._fetch_calls(
            Call.agent_user_id == agent_user_id,
            Call.call_date >= start_date,
            Call.call_date <= end_date,
        )
        by_day: dict[date, list[Call]] = defaultdict(list)
        for c in calls:
            by_day[c.call_date].append(c)
        return [
            DailyCallCount(
                call_date=day,
                call_count=len(day_calls),
                total_duration_seconds=sum(c.total_duration_seconds for c in day_calls),
            )
            for day, day_calls in sorted(by_day.items())
        ]

    async def get_team_summary(
        self, department: str, start_date: date, end_date: date
    ) -> Optional[TeamSummary]:
        calls = await self._fetch_calls(
            Call.agent_user_id.in_(
                select(Agent.agent_user_id).where(Agent.department == department)
            ),
            Call.call_date >= start_date,
            Call.call_date <= end_date,
        )
        if not calls:
            return None

        by_agent: dict[str, list[Call]] = defaultdict(list)
        for c in calls:
            by_agent[c.agent_user_id].append(c)

        agents = [
            AgentBreakdown(
                agent_user_id=agent_id,
                agent_name=agent_calls[0].agent.first_name if agent_calls[0].agent else "Unknown",
                total_calls=len(agent_calls),
                avg_duration_seconds=round(
                    sum(c.total_duration_seconds for c in agent_calls) / len(agent_calls), 1
                ),
                avg_agent_talk_percentage=_average([c.agent_talk_percentage for c in agent_calls]),
            )
            for agent_id, agent_calls in by_agent.items()
        ]
        agents.sort(key=lambda a: a.total_calls, reverse=True)

        avg_duration = sum(c.total_duration_seconds for c in calls) / len(calls)
        return TeamSummary(
            department=department,
            total_calls=len(calls),
            active_agents=len(by_agent),
            avg_duration_seconds=round(avg_duration, 1),
            avg_duration_formatted=format_duration(avg_duration),
            avg_agent_talk_percentage=_average([c.agent_talk_percentage for c in calls]),
            agents=agents,
        )
