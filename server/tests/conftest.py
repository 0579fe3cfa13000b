"""Shared fixtures: an in-memory database, seeded call data and LLM fakes."""

from datetime import date, timedelta
from typing import Any, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from salescoach.models import Agent, Call, CallTranscript, TranscriptChunk
from salescoach.models.base import Base
from salescoach.schemas.call import ResolvedAgent
from salescoach.schemas.rubric import RubricConfig
from salescoach.services.agent_directory import AgentDirectory
from salescoach.services.call_store import CallStore
from salescoach.services.claude_client import ClaudeResponse
from salescoach.services.handlers import HandlerContext
from salescoach.services.search_store import SearchStore

TODAY = date.today()

BRADLEY_TRANSCRIPT = """Agent: Hi, this is Bradley, a licensed agent. This call is recorded.
Customer: Hi Bradley, I'm looking at health plans.
Agent: Great. Are you shopping for just yourself or your family?
Customer: Just me. The price is my biggest worry.
Agent: Understood, let's look at what fits your budget."""


class ScriptedLLM:
    """Stand-in for ClaudeClient that replays queued responses.

    Queue entries that are exceptions are raised instead of returned.
    """

    def __init__(self, json_responses: Optional[list] = None, text_responses: Optional[list] = None):
        self.json_responses = list(json_responses or [])
        self.text_responses = list(text_responses or [])
        self.json_calls: list[tuple[str, str]] = []
        self.text_calls: list[tuple[str, str]] = []

    async def chat_json(self, system_prompt: str, user_prompt: str, max_tokens: int = 1024) -> Any:
        self.json_calls.append((system_prompt, user_prompt))
        if not self.json_responses:
            raise AssertionError("No scripted JSON response left")
        response = self.json_responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    async def chat(
        self, system_prompt: str, user_prompt: str, max_tokens: int = 1024, temperature: float = 0.7
    ) -> ClaudeResponse:
        self.text_calls.append((system_prompt, user_prompt))
        if not self.text_responses:
            raise AssertionError("No scripted text response left")
        response = self.text_responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return ClaudeResponse(content=response, usage={"input_tokens": 10, "output_tokens": 20})


class FakeEmbeddings:
    """Maps known phrases to fixed vectors; everything else gets an orthogonal vector."""

    def __init__(self, vectors: Optional[dict[str, list[float]]] = None):
        self.vectors = vectors or {}

    async def embed(self, text: str) -> list[float]:
        return self.vectors.get(text, [0.0, 0.0, 1.0])

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed(t) for t in texts]


class StaticRubrics:
    """Rubric source that always returns the same snapshot and counts lookups."""

    def __init__(self, config: Optional[RubricConfig] = None):
        self.config = config
        self.lookups = 0

    async def get_active_config(self) -> Optional[RubricConfig]:
        self.lookups += 1
        return self.config


class FakeAgentDirectory:
    def __init__(self, agents: dict[str, str], error: Optional[Exception] = None):
        # first name -> agent_user_id
        self.agents = agents
        self.error = error
        self.lookups: list[str] = []

    async def resolve_by_name(self, partial_name: str):
        self.lookups.append(partial_name)
        if self.error:
            raise self.error
        for first_name, agent_id in self.agents.items():
            if first_name.lower().startswith(partial_name.lower()):
                return ResolvedAgent(agent_user_id=agent_id, first_name=first_name, similarity_score=0.9)
        return None


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def seeded_db(session_factory):
    """Three agents, a handful of calls in the last week, one call with chunks."""
    async with session_factory() as db:
        db.add_all([
            Agent(agent_user_id="agent-bradley", first_name="Bradley", last_name="Cole", department="Agent"),
            Agent(agent_user_id="agent-sarah", first_name="Sarah", last_name="Kim", department="Agent"),
            Agent(agent_user_id="agent-maria", first_name="Maria", last_name="Lopez", department="Retention"),
        ])
        db.add_all([
            Call(
                call_id="call-b1",
                agent_user_id="agent-bradley",
                call_date=TODAY - timedelta(days=1),
                total_duration_seconds=1500,
                is_inbound_call=True,
                agent_talk_percentage=60.0,
                customer_talk_percentage=40.0,
                total_turns=5,
            ),
            Call(
                call_id="call-b2",
                agent_user_id="agent-bradley",
                call_date=TODAY - timedelta(days=3),
                total_duration_seconds=300,
                is_inbound_call=False,
                agent_talk_percentage=50.0,
                customer_talk_percentage=50.0,
                total_turns=12,
            ),
            Call(
                call_id="call-s1",
                agent_user_id="agent-sarah",
                call_date=TODAY - timedelta(days=2),
                total_duration_seconds=900,
                is_inbound_call=True,
                agent_talk_percentage=45.0,
                customer_talk_percentage=55.0,
                total_turns=20,
            ),
            Call(
                call_id="call-old",
                agent_user_id="agent-sarah",
                call_date=TODAY - timedelta(days=60),
                total_duration_seconds=2400,
                is_inbound_call=True,
                total_turns=30,
            ),
            Call(
                call_id="call-no-transcript",
                agent_user_id="agent-maria",
                call_date=TODAY - timedelta(days=1),
                total_duration_seconds=200,
                is_inbound_call=False,
            ),
        ])
        db.add_all([
            CallTranscript(call_id="call-b1", full_transcript=BRADLEY_TRANSCRIPT),
            CallTranscript(call_id="call-s1", full_transcript="Agent: Hello.\nCustomer: Hi."),
        ])
        db.add_all([
            TranscriptChunk(
                call_id="call-b1",
                chunk_index=0,
                text="The price is my biggest worry.",
                embedding=[1.0, 0.0, 0.0],
            ),
            TranscriptChunk(
                call_id="call-b1",
                chunk_index=1,
                text="Let's look at what fits your budget.",
                embedding=[0.8, 0.6, 0.0],
            ),
            TranscriptChunk(
                call_id="call-s1",
                chunk_index=0,
                text="Hello. Hi.",
                embedding=[0.0, 1.0, 0.0],
            ),
        ])
        await db.commit()
    return session_factory


@pytest.fixture
def make_context(seeded_db):
    """Build a HandlerContext over the seeded database with the given fakes."""

    def _make(llm=None, rubrics=None, embeddings=None) -> HandlerContext:
        return HandlerContext(
            llm=llm or ScriptedLLM(),
            embeddings=embeddings or FakeEmbeddings({"pricing": [1.0, 0.0, 0.0]}),
            agents=AgentDirectory(seeded_db),
            calls=CallStore(seeded_db),
            search=SearchStore(seeded_db),
            rubrics=rubrics or StaticRubrics(),
        )

    return _make
