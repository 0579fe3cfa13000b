import enum
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field


class Intent(str, enum.Enum):
    LIST_CALLS = "LIST_CALLS"
    AGENT_STATS = "AGENT_STATS"
    TEAM_SUMMARY = "TEAM_SUMMARY"
    GET_TRANSCRIPT = "GET_TRANSCRIPT"
    SEARCH_CALLS = "SEARCH_CALLS"
    COACHING = "COACHING"
    GENERAL = "GENERAL"


class IntentClassification(BaseModel):
    """Classifier output for a single message. A confidence of 0.0 marks a fallback."""

    intent: Intent
    agent_name: Optional[str] = None
    days_back: int = Field(default=7, ge=1)
    call_id: Optional[str] = None
    search_query: Optional[str] = None
    min_duration_minutes: Optional[float] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    model_config = {"frozen": True}

    @classmethod
    def fallback(cls) -> "IntentClassification":
        return cls(intent=Intent.GENERAL, days_back=7, confidence=0.0)


class HandlerParams(BaseModel):
    """Handler-ready parameters after agent and date resolution."""

    agent_id: Optional[str] = None
    agent_name: Optional[str] = None
    # Set when a name was given but the directory lookup could not resolve it
    unresolved_agent_name: Optional[str] = None
    resolution_error: Optional[str] = None
    days_back: int = 7
    start_date: date
    end_date: date
    call_id: Optional[str] = None
    search_query: Optional[str] = None
    min_duration_minutes: Optional[float] = None
    department: Optional[str] = None
    limit: Optional[int] = None

    model_config = {"frozen": True}


class HandlerResult(BaseModel):
    success: bool
    data: Optional[dict[str, Any]] = None
    error: Optional[str] = None


class ChatContext(BaseModel):
    agent_user_id: Optional[str] = None
    call_id: Optional[str] = None
    department: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    # Row cap for call lists and search results; handler defaults apply when unset
    limit: Optional[int] = Field(None, ge=1)


class ChatRequest(BaseModel):
    message: str
    context: Optional[ChatContext] = None


class ChatResponse(BaseModel):
    success: bool
    response: str
    data: Optional[dict[str, Any]] = None
    intent: Intent
    timestamp: str
    error: Optional[str] = None
