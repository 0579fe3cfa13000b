from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field

# Fixed banding table: (inclusive lower bound, label), highest first
PERFORMANCE_BANDS: list[tuple[float, str]] = [
    (4.5, "Top Performer"),
    (3.5, "Solid Performer"),
    (2.5, "Developing"),
    (1.5, "Needs Coaching"),
    (1.0, "Performance Issue"),
]

PERFORMANCE_LEVELS = [label for _, label in PERFORMANCE_BANDS]


def performance_level_for_score(overall_score: float) -> str:
    """Map a 1.0-5.0 overall score to its performance band.

    Scores outside [1.0, 5.0] are outside the scoring contract and raise
    ValueError.
    """
    if overall_score < 1.0 or overall_score > 5.0:
        raise ValueError(f"overall_score {overall_score} is outside the 1.0-5.0 range")
    for lower, label in PERFORMANCE_BANDS:
        if overall_score >= lower:
            return label
    return PERFORMANCE_BANDS[-1][1]


@dataclass(frozen=True)
class CoachingVariables:
    agent_name: str
    call_date: str
    duration: str
    customer_talk_ratio: str
    agent_talk_ratio: str
    transcript: str


class NotableMoment(BaseModel):
    type: str  # "positive" or "needs_work"
    category: str
    description: str
    quote: Optional[str] = None


class RedFlagHits(BaseModel):
    critical: list[str] = []
    high: list[str] = []
    medium: list[str] = []


class CoachingAnalysis(BaseModel):
    scores: dict[str, int]
    overall_score: float = Field(ge=1.0, le=5.0)
    performance_level: str
    strengths: list[str] = []
    improvements: list[str] = []
    action_items: list[str] = []
    red_flags: RedFlagHits = RedFlagHits()
    notable_moments: list[NotableMoment] = []

    @property
    def has_critical_flags(self) -> bool:
        return len(self.red_flags.critical) > 0
