"""Coaching analysis prompts.

Compiles the active rubric (categories, weights, scoring criteria and red
flags) into the instructions sent to the model, and validates the model's
JSON answer back into a CoachingAnalysis. When no rubric is active, the
static prompt below is used; it scores the same six category slugs so the
response is parsed the same way either way.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import ValidationError

from salescoach.schemas.coaching import (
    CoachingAnalysis,
    CoachingVariables,
    NotableMoment,
    RedFlagHits,
    performance_level_for_score,
)
from salescoach.schemas.rubric import RedFlag, RedFlagSeverity, RubricConfig, ThresholdType

logger = logging.getLogger(__name__)

MAX_CRITERIA_SHOWN = 3
MAX_CRITERION_CHARS = 150

COACHING_SYSTEM_PROMPT = """You are an expert sales coach for a health insurance agency selling ACA plans, Limited Medical Plans, and Life Insurance.

Your role is to analyze sales call transcripts and provide constructive, actionable coaching feedback based on the company's coaching rubric.

Be encouraging but honest. Focus on specific examples from the transcript. Provide feedback that will actually help the agent improve."""

SCORE_SCALE = """Score each category from 1-5:
- 1 = Needs Improvement (missing or ineffective)
- 2 = Below Standard (attempted but significant gaps)
- 3 = Meets Standard (competent, room for improvement)
- 4 = Above Standard (strong with minor refinements possible)
- 5 = Excellent (exemplary, use as training example)"""

PERFORMANCE_THRESHOLDS = """Performance level thresholds:
- 4.5-5.0: Top Performer
- 3.5-4.4: Solid Performer
- 2.5-3.4: Developing
- 1.5-2.4: Needs Coaching
- 1.0-1.4: Performance Issue"""

ANALYSIS_PROMPT_TEMPLATE = """Analyze this sales call transcript and provide coaching feedback.

## Call Information
- Agent: {agent_name}
- Call Date: {call_date}
- Duration: {duration}
- Customer Talk Ratio: {customer_talk_ratio}%
- Agent Talk Ratio: {agent_talk_ratio}%

## Transcript
{transcript}

## Scoring Rubric

{score_scale}

### Categories to Evaluate:

{category_section}

## Red Flags to Check

{red_flag_section}

## Response Format

Respond with valid JSON (no markdown code blocks):
{response_schema}

{performance_thresholds}

Calculate overall_score using weights:
{score_formula}"""

SUMMARY_PROMPT_TEMPLATE = """You are a sales coach providing a summary of coaching feedback.

## Coaching Analysis Results
{coaching_json}

## Call Information
- Agent: {agent_name}
- Call Date: {call_date}
- Duration: {duration}

## Rubric Categories
{category_list}

Write a friendly, constructive coaching summary for this agent. Include:

1. **Overall Assessment** - A one-sentence summary of how they did
2. **Score Breakdown** - List each category with its score
3. **Top Strengths** - 2-3 things they did well with specific examples
4. **Focus Areas** - 2-3 things to improve with specific examples
5. **Action Items** - 3 concrete things to practice on the next call
6. **Red Flags** - Only mention if critical or high priority flags were detected

Keep the tone encouraging but honest. Use their name. Format with markdown for readability."""

# (slug, name, weight) of the static fallback rubric, in sort order
STATIC_CATEGORIES: list[tuple[str, str, float]] = [
    ("opening_rapport", "Opening & Rapport", 10),
    ("needs_discovery", "Needs Discovery & Qualification", 30),
    ("product_presentation", "Product Presentation", 20),
    ("objection_handling", "Objection Handling", 20),
    ("compliance_disclosures", "Compliance & Disclosures", 10),
    ("closing_enrollment", "Closing & Enrollment", 10),
]

STATIC_CATEGORY_SECTION = """**1. Opening & Rapport (10% weight)**
Required elements: Agent name, licensed agent statement, state licensing, reason for calling, recording disclosure, consent to ask questions.
- Score 5: All elements present naturally, built rapport, set expectations
- Score 3: All required elements present but mechanical
- Score 1: Missing multiple required elements

**2. Needs Discovery & Qualification (30% weight)**
Required questions: Individual/family, current insurance status, zip code, tax filing status, dependents, employment, expected income, pre-existing conditions (with reassurance), medications, doctor preferences.
Critical: Must verify income to determine ACA vs Limited Medical path.
- Score 5: All questions asked, great follow-ups, correctly identified product path
- Score 3: Most questions covered, correct product path, adequate but surface-level
- Score 1: Skipped discovery, didn't verify income, wrong product pitched

**3. Product Presentation (20% weight)**
Required elements: Subsidy explanation, copays, preventative care, deductible/coinsurance, dental and vision benefits, accidental death benefits, total price breakdown.
- Score 5: Personalized presentation connecting benefits to customer's specific situation
- Score 3: Covered all elements clearly but not personalized
- Score 1: Generic, missed major benefits, confusing

**4. Objection Handling (20% weight)**
Common objections: "Too expensive", "Need to talk to spouse", "I'm healthy, don't need it", "Need to think about it", "Already have coverage"
- Score 5: Anticipated objections, validated concerns, turned objections into reasons to buy
- Score 3: Acknowledged and addressed adequately
- Score 1: Ignored, argued, or gave up immediately

**5. Compliance & Disclosures (10% weight)**
Must-have: Recording disclosure, citizenship/residency verification before SSN, "NOT health insurance" clarification for add-on benefits, verbal confirmations, healthcare.gov duplicate-plan warning.
- Score 5: All elements delivered naturally, built trust through transparency
- Score 3: All critical elements present
- Score 1: Critical elements missing, compliance risk

**6. Closing & Enrollment (10% weight)**
Required: Address for ID cards, SSN with citizenship verification, name as on SS card, payment info, consent forms explained, next steps communication, transfer to verification.
- Score 5: Smooth close, customer confident about next steps, professional transfer
- Score 3: All info collected, process complete but mechanical
- Score 1: Incomplete, didn't transfer, customer confused"""

STATIC_RED_FLAG_SECTION = """**Critical (immediate manager alert):**
- ssn_before_citizenship: SSN collected before citizenship/residency verification
- missing_recording_disclosure: Recording disclosure missing entirely
- subsidy_guarantee_no_income: Guaranteed specific subsidy amount before income verification
- payment_before_consent: Payment collected before consent forms sent/explained

**High Priority:**
- aca_without_income: ACA pitch without income verification
- missing_careconnect_clarification: Missing "NOT health insurance" clarification
- missing_rogue_agent_warning: Missing rogue agent or healthcare.gov duplicate warning
- excessive_talk_ratio (threshold: 70%): Agent talk ratio above threshold

**Medium Priority:**
- skipped_health_discovery: Skipped pre-existing conditions or medications questions
- skipped_doctor_preference: Skipped doctor preference question
- rushed_closing: Rushed closing without verbal confirmations
- no_enrollment_urgency: No enrollment urgency created"""

_SEVERITY_HEADINGS = [
    (RedFlagSeverity.CRITICAL, "**Critical (immediate manager alert):**"),
    (RedFlagSeverity.HIGH, "**High Priority:**"),
    (RedFlagSeverity.MEDIUM, "**Medium Priority:**"),
]


class AnalysisValidationError(Exception):
    """The model's coaching JSON is missing fields or has the wrong types."""


@dataclass(frozen=True)
class CompiledCoachingPrompt:
    system_prompt: str
    analysis_prompt: str
    response_schema: str
    score_formula: str
    # (slug, name, weight) of the enabled categories in sort order
    categories: tuple[tuple[str, str, float], ...] = field(default_factory=tuple)
    rubric_config_id: Optional[str] = None
    rubric_version: Optional[int] = None
    rubric_name: Optional[str] = None

    @property
    def category_slugs(self) -> list[str]:
        return [slug for slug, _, _ in self.categories]

    @property
    def is_dynamic(self) -> bool:
        return self.rubric_config_id is not None


def _pct(value: float) -> str:
    return f"{value:g}"


def _truncate(text: str, limit: int = MAX_CRITERION_CHARS) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def build_score_formula(categories) -> str:
    """Render `slug × weight` terms joined by ' + ', weights as fractions of 1."""
    return " + ".join(f"{slug} × {weight / 100:.2f}" for slug, _, weight in categories)


def build_response_schema(slugs: list[str]) -> str:
    score_fields = ",\n".join(f'    "{slug}": <1-5>' for slug in slugs)
    return f"""{{
  "scores": {{
{score_fields}
  }},
  "overall_score": <weighted average to 2 decimal places>,
  "performance_level": "<Top Performer|Solid Performer|Developing|Needs Coaching|Performance Issue>",
  "strengths": [
    "<Specific strength with example from transcript>",
    "<Specific strength with example from transcript>"
  ],
  "improvements": [
    "<Specific area for improvement with example from transcript>",
    "<Specific area for improvement with example from transcript>"
  ],
  "action_items": [
    "<Concrete, actionable coaching tip>",
    "<Concrete, actionable coaching tip>",
    "<Concrete, actionable coaching tip>"
  ],
  "red_flags": {{
    "critical": ["<flag key if detected>"],
    "high": ["<flag key if detected>"],
    "medium": ["<flag key if detected>"]
  }},
  "notable_moments": [
    {{
      "type": "<positive|needs_work>",
      "category": "<category slug>",
      "description": "<Brief description of the moment>",
      "quote": "<Relevant quote from transcript if available>"
    }}
  ]
}}"""


def build_category_section(rubric: RubricConfig) -> str:
    blocks = []
    for cat in rubric.enabled_categories():
        # Highest scores first; sorted() is stable so ties keep their order
        top = sorted(cat.scoring_criteria, key=lambda sc: -sc.score)[:MAX_CRITERIA_SHOWN]
        criteria = "\n".join(f"- Score {sc.score}: {_truncate(sc.criteria_text)}" for sc in top)
        description = cat.description or "Evaluate this category based on the agent's performance."
        block = f"**{cat.sort_order}. {cat.name} ({_pct(cat.weight)}% weight)**\n{description}"
        if criteria:
            block += f"\n{criteria}"
        blocks.append(block)
    return "\n\n".join(blocks)


def _red_flag_line(flag: RedFlag) -> str:
    threshold = ""
    if flag.threshold_type == ThresholdType.PERCENTAGE and flag.threshold_value is not None:
        threshold = f" (threshold: {_pct(flag.threshold_value)}%)"
    return f"- {flag.flag_key}: {flag.display_name}{threshold}: {flag.description}"


def build_red_flag_section(rubric: RubricConfig) -> str:
    sections = []
    for severity, heading in _SEVERITY_HEADINGS:
        flags = rubric.enabled_red_flags(severity)
        if flags:
            sections.append(heading + "\n" + "\n".join(_red_flag_line(f) for f in flags))
    return "\n\n".join(sections) or "No red flags are configured for this rubric."


def build_dynamic_system_prompt(rubric: RubricConfig) -> str:
    return (
        f"{COACHING_SYSTEM_PROMPT}\n\n"
        f'You are using the "{rubric.name}" rubric (version {rubric.version}).'
    )


def _render_analysis_prompt(
    variables: CoachingVariables,
    category_section: str,
    red_flag_section: str,
    response_schema: str,
    score_formula: str,
) -> str:
    return ANALYSIS_PROMPT_TEMPLATE.format(
        agent_name=variables.agent_name or "N/A",
        call_date=variables.call_date or "N/A",
        duration=variables.duration or "N/A",
        customer_talk_ratio=variables.customer_talk_ratio or "N/A",
        agent_talk_ratio=variables.agent_talk_ratio or "N/A",
        transcript=variables.transcript,
        score_scale=SCORE_SCALE,
        category_section=category_section,
        red_flag_section=red_flag_section,
        response_schema=response_schema,
        performance_thresholds=PERFORMANCE_THRESHOLDS,
        score_formula=score_formula,
    )


def compile_coaching_prompt(rubric: RubricConfig, variables: CoachingVariables) -> CompiledCoachingPrompt:
    """Build the analysis prompt from a rubric config. Output depends only on the inputs."""
    categories = tuple((c.slug, c.name, c.weight) for c in rubric.enabled_categories())
    slugs = [slug for slug, _, _ in categories]
    response_schema = build_response_schema(slugs)
    score_formula = build_score_formula(categories)

    analysis_prompt = _render_analysis_prompt(
        variables,
        category_section=build_category_section(rubric),
        red_flag_section=build_red_flag_section(rubric),
        response_schema=response_schema,
        score_formula=score_formula,
    )
    return CompiledCoachingPrompt(
        system_prompt=build_dynamic_system_prompt(rubric),
        analysis_prompt=analysis_prompt,
        response_schema=response_schema,
        score_formula=score_formula,
        categories=categories,
        rubric_config_id=rubric.id,
        rubric_version=rubric.version,
        rubric_name=rubric.name,
    )


def compile_static_coaching_prompt(variables: CoachingVariables) -> CompiledCoachingPrompt:
    """Fallback used when no rubric config is active."""
    categories = tuple(STATIC_CATEGORIES)
    slugs = [slug for slug, _, _ in categories]
    response_schema = build_response_schema(slugs)
    score_formula = build_score_formula(categories)

    analysis_prompt = _render_analysis_prompt(
        variables,
        category_section=STATIC_CATEGORY_SECTION,
        red_flag_section=STATIC_RED_FLAG_SECTION,
        response_schema=response_schema,
        score_formula=score_formula,
    )
    return CompiledCoachingPrompt(
        system_prompt=COACHING_SYSTEM_PROMPT,
        analysis_prompt=analysis_prompt,
        response_schema=response_schema,
        score_formula=score_formula,
        categories=categories,
    )


def build_summary_prompt(
    compiled: CompiledCoachingPrompt,
    coaching_json: str,
    agent_name: str,
    call_date: str,
    duration: str,
) -> str:
    category_list = "\n".join(f"- {name} ({_pct(weight)}%)" for _, name, weight in compiled.categories)
    return SUMMARY_PROMPT_TEMPLATE.format(
        coaching_json=coaching_json,
        agent_name=agent_name or "N/A",
        call_date=call_date or "N/A",
        duration=duration or "N/A",
        category_list=category_list,
    )


def weighted_overall_score(scores: dict[str, int], categories) -> float:
    total_weight = sum(weight for _, _, weight in categories)
    if total_weight <= 0:
        raise AnalysisValidationError("Rubric has no weighted categories to score")
    weighted = sum(scores[slug] * weight for slug, _, weight in categories)
    return round(weighted / total_weight, 2)


def _string_list(raw: dict, key: str) -> list[str]:
    value = raw.get(key) or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise AnalysisValidationError(f"'{key}' must be a list of strings")
    return value


def _score(slug: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AnalysisValidationError(f"Score for '{slug}' is not a number: {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise AnalysisValidationError(f"Score for '{slug}' is not a whole number: {value}")
    if not 1 <= value <= 5:
        raise AnalysisValidationError(f"Score for '{slug}' is outside 1-5: {value}")
    return int(value)


def parse_coaching_analysis(raw: Any, compiled: CompiledCoachingPrompt) -> CoachingAnalysis:
    """Validate the model's JSON against the compiled rubric.

    The overall score and performance level are recomputed from the category
    scores; the model's own values are only compared and logged.
    """
    if not isinstance(raw, dict):
        raise AnalysisValidationError(f"Expected a JSON object, got {type(raw).__name__}")

    raw_scores = raw.get("scores")
    if not isinstance(raw_scores, dict):
        raise AnalysisValidationError("'scores' must be an object keyed by category slug")

    missing = [slug for slug in compiled.category_slugs if slug not in raw_scores]
    if missing:
        raise AnalysisValidationError(f"Missing scores for: {', '.join(missing)}")
    scores = {slug: _score(slug, raw_scores[slug]) for slug in compiled.category_slugs}

    raw_flags = raw.get("red_flags") or {}
    if not isinstance(raw_flags, dict):
        raise AnalysisValidationError("'red_flags' must be an object")

    raw_moments = raw.get("notable_moments") or []
    if not isinstance(raw_moments, list):
        raise AnalysisValidationError("'notable_moments' must be a list")

    try:
        red_flags = RedFlagHits(
            critical=_string_list(raw_flags, "critical"),
            high=_string_list(raw_flags, "high"),
            medium=_string_list(raw_flags, "medium"),
        )
        moments = [NotableMoment.model_validate(m) for m in raw_moments]
    except ValidationError as e:
        raise AnalysisValidationError(f"Invalid coaching analysis: {e}") from e

    overall = weighted_overall_score(scores, compiled.categories)
    level = performance_level_for_score(overall)

    model_overall = raw.get("overall_score")
    if isinstance(model_overall, (int, float)) and abs(model_overall - overall) > 0.05:
        logger.warning(f"Model overall_score {model_overall} differs from weighted score {overall}")
    if raw.get("performance_level") not in (None, level):
        logger.info(f"Model performance_level '{raw.get('performance_level')}' replaced with '{level}'")

    return CoachingAnalysis(
        scores=scores,
        overall_score=overall,
        performance_level=level,
        strengths=_string_list(raw, "strengths"),
        improvements=_string_list(raw, "improvements"),
        action_items=_string_list(raw, "action_items"),
        red_flags=red_flags,
        notable_moments=moments,
    )
