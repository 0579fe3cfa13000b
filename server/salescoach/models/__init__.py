from salescoach.models.base import Base
from salescoach.models.agent import Agent
from salescoach.models.call import Call, CallTranscript, TranscriptChunk
from salescoach.models.rubric import (
    RubricCategoryModel,
    RubricConfigModel,
    RubricRedFlagModel,
    RubricScoringCriterionModel,
)

__all__ = [
    "Base",
    "Agent",
    "Call",
    "CallTranscript",
    "TranscriptChunk",
    "RubricConfigModel",
    "RubricCategoryModel",
    "RubricScoringCriterionModel",
    "RubricRedFlagModel",
]
