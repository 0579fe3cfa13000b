from datetime import date
from typing import Optional

from pydantic import BaseModel


def format_duration(seconds: int | float) -> str:
    """Format seconds as M:SS."""
    seconds = int(seconds or 0)
    return f"{seconds // 60}:{seconds % 60:02d}"


class AgentRecord(BaseModel):
    agent_user_id: str
    first_name: str
    last_name: Optional[str] = None
    department: Optional[str] = None

    model_config = {"from_attributes": True}


class ResolvedAgent(BaseModel):
    agent_user_id: str
    first_name: str
    similarity_score: float


class CallRecord(BaseModel):
    call_id: str
    agent_user_id: str
    agent_name: Optional[str] = None
    call_date: date
    total_duration_seconds: int
    total_duration_formatted: str
    is_inbound_call: bool
    agent_talk_percentage: Optional[float] = None
    customer_talk_percentage: Optional[float] = None
    total_turns: int = 0


class TranscriptRecord(BaseModel):
    call_id: str
    full_transcript: str
    agent_name: Optional[str] = None
    call_date: date
    total_duration_formatted: str
    agent_talk_percentage: Optional[float] = None
    customer_talk_percentage: Optional[float] = None


class AgentPerformance(BaseModel):
    agent_user_id: str
    total_calls: int
    total_duration_seconds: int
    avg_duration_seconds: float
    avg_duration_formatted: str
    avg_agent_talk_percentage: Optional[float] = None
    avg_customer_talk_percentage: Optional[float] = None
    inbound_calls: int
    outbound_calls: int


class DailyCallCount(BaseModel):
    call_date: date
    call_count: int
    total_duration_seconds: int


class AgentBreakdown(BaseModel):
    agent_user_id: str
    agent_name: str
    total_calls: int
    avg_duration_seconds: float
    avg_agent_talk_percentage: Optional[float] = None


class TeamSummary(BaseModel):
    department: str
    total_calls: int
    active_agents: int
    avg_duration_seconds: float
    avg_duration_formatted: str
    avg_agent_talk_percentage: Optional[float] = None
    agents: list[AgentBreakdown] = []


class SearchHit(BaseModel):
    call_id: str
    agent_user_id: str
    agent_name: Optional[str] = None
    call_date: date
    excerpt: str
    similarity: Optional[float] = None
