import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

WEIGHT_TOLERANCE = 0.01


class RedFlagSeverity(str, enum.Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


class ThresholdType(str, enum.Enum):
    BOOLEAN = "boolean"
    PERCENTAGE = "percentage"


class ScoringCriterion(BaseModel):
    score: int = Field(ge=1, le=5)
    criteria_text: str

    model_config = {"from_attributes": True}


class CategoryInput(BaseModel):
    name: str
    slug: str = Field(min_length=1)
    description: Optional[str] = None
    weight: float = Field(ge=0, le=100)
    sort_order: int
    is_enabled: bool = True
    scoring_criteria: list[ScoringCriterion] = []

    model_config = {"from_attributes": True}

    @field_validator("scoring_criteria")
    @classmethod
    def _one_criterion_per_score(cls, value: list[ScoringCriterion]) -> list[ScoringCriterion]:
        scores = [c.score for c in value]
        if len(scores) != len(set(scores)):
            raise ValueError("scoring_criteria must have at most one entry per score 1-5")
        return value


class Category(CategoryInput):
    id: Optional[str] = None


class RedFlagInput(BaseModel):
    flag_key: str = Field(min_length=1)
    display_name: str
    description: str
    severity: RedFlagSeverity
    threshold_type: Optional[ThresholdType] = None
    threshold_value: Optional[float] = None
    is_enabled: bool = True
    sort_order: Optional[int] = None

    model_config = {"from_attributes": True}


class RedFlag(RedFlagInput):
    id: Optional[str] = None
    sort_order: int = 0


def _check_unique(categories, red_flags) -> None:
    if categories:
        slugs = [c.slug for c in categories]
        duplicates = sorted({s for s in slugs if slugs.count(s) > 1})
        if duplicates:
            raise ValueError(f"Duplicate category slugs: {', '.join(duplicates)}")
    if red_flags:
        keys = [f.flag_key for f in red_flags]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise ValueError(f"Duplicate red flag keys: {', '.join(duplicates)}")


class RubricConfig(BaseModel):
    """A rubric version with its categories and red flags.

    Instances are read-only snapshots: a request resolves the active config
    once and keeps using the same object even if another version is
    activated meanwhile.
    """

    id: str
    name: str
    description: Optional[str] = None
    version: int
    is_active: bool = False
    is_draft: bool = True
    categories: list[Category] = []
    red_flags: list[RedFlag] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "frozen": True}

    @model_validator(mode="after")
    def _unique_keys(self) -> "RubricConfig":
        _check_unique(self.categories, self.red_flags)
        return self

    def enabled_categories(self) -> list[Category]:
        return sorted(
            (c for c in self.categories if c.is_enabled),
            key=lambda c: c.sort_order,
        )

    def enabled_red_flags(self, severity: RedFlagSeverity) -> list[RedFlag]:
        return sorted(
            (f for f in self.red_flags if f.is_enabled and f.severity == severity),
            key=lambda f: f.sort_order,
        )


class RubricCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    clone_from_id: Optional[str] = None
    categories: Optional[list[CategoryInput]] = None
    red_flags: Optional[list[RedFlagInput]] = None

    @model_validator(mode="after")
    def _unique_keys(self) -> "RubricCreate":
        _check_unique(self.categories, self.red_flags)
        return self


class RubricUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    categories: Optional[list[CategoryInput]] = None
    red_flags: Optional[list[RedFlagInput]] = None

    @model_validator(mode="after")
    def _unique_keys(self) -> "RubricUpdate":
        _check_unique(self.categories, self.red_flags)
        return self


class RubricVersionSummary(BaseModel):
    id: str
    name: str
    version: int
    is_active: bool
    is_draft: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class WeightInput(BaseModel):
    weight: float
    is_enabled: Optional[bool] = None


class WeightValidation(BaseModel):
    is_valid: bool
    total: float
    remaining: float
    message: Optional[str] = None


def _pct(value: float) -> str:
    return f"{round(value, 2):g}"


def validate_category_weights(categories) -> WeightValidation:
    """Check that the enabled category weights add up to 100.

    Accepts any objects (or dicts) with ``weight`` and optional
    ``is_enabled``; a missing or None ``is_enabled`` counts as enabled.
    Never mutates its input.
    """
    total = 0.0
    for category in categories:
        if isinstance(category, dict):
            weight = category.get("weight", 0)
            enabled = category.get("is_enabled")
        else:
            weight = category.weight
            enabled = getattr(category, "is_enabled", None)
        if enabled is False:
            continue
        total += float(weight)

    remaining = 100 - total
    is_valid = abs(remaining) < WEIGHT_TOLERANCE

    message = None
    if not is_valid:
        if remaining > 0:
            message = f"{_pct(remaining)}% remaining to allocate"
        else:
            message = f"{_pct(abs(remaining))}% over the limit"

    return WeightValidation(
        is_valid=is_valid,
        total=round(total, 2),
        remaining=round(remaining, 2),
        message=message,
    )
