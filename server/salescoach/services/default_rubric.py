"""The standard sales-call rubric, seeded as version 1 on an empty database."""

from salescoach.schemas.rubric import CategoryInput, RedFlagInput, RubricCreate, ScoringCriterion

DEFAULT_RUBRIC_NAME = "Standard Sales Call Rubric"
DEFAULT_RUBRIC_DESCRIPTION = "Default coaching rubric for health-insurance enrollment sales calls"


def _criteria(*texts: str) -> list[ScoringCriterion]:
    return [ScoringCriterion(score=i + 1, criteria_text=t) for i, t in enumerate(texts)]


DEFAULT_CATEGORIES: list[CategoryInput] = [
    CategoryInput(
        name="Opening & Rapport",
        slug="opening_rapport",
        description=(
            "First impression, compliance intro, consent. Includes agent identification, "
            "recording disclosure, and establishing trust."
        ),
        weight=10,
        sort_order=1,
        scoring_criteria=_criteria(
            "Missing multiple required elements. No agent name, company name or recording disclosure.",
            "Included agent name and company but missed recording disclosure or consent request.",
            "All required elements present: name, company, state licensing, reason for call, "
            "recording disclosure. Delivery adequate but mechanical.",
            "Strong introduction with all elements. Natural delivery, confirmed availability, "
            "brief rapport-building.",
            "Exceptional opening that immediately built trust. Compliance elements woven in "
            "naturally and clear expectations set for the call.",
        ),
    ),
    CategoryInput(
        name="Needs Discovery & Qualification",
        slug="needs_discovery",
        description=(
            "Understanding customer needs, determining ACA vs Limited Medical path based on "
            "income qualification."
        ),
        weight=30,
        sort_order=2,
        scoring_criteria=_criteria(
            "Skipped discovery or asked fewer than 3 questions. Did not verify income.",
            "Asked basic questions but missed income verification, pre-existing conditions or medications.",
            "Covered most required questions, verified income and identified the correct product path.",
            "Thorough discovery with follow-up questions and pre-existing condition reassurance.",
            "Uncovered motivations as well as facts. Customer felt heard; specific pain points identified.",
        ),
    ),
    CategoryInput(
        name="Product Presentation",
        slug="product_presentation",
        description=(
            "Connecting benefits to needs, explaining subsidy, copays, preventative care, "
            "dental/vision, and total price."
        ),
        weight=20,
        sort_order=3,
        scoring_criteria=_criteria(
            "Generic presentation, missed major benefits, confusing jargon.",
            "Covered basics but scripted and impersonal; benefits not tied to discovered needs.",
            "Covered subsidy, copays, preventative care, deductible, dental, vision and total price clearly.",
            "Referenced discovered needs and connected benefits to the customer's medications or doctors.",
            "Consultative presentation built around the customer's pain points; complex concepts made simple.",
        ),
    ),
    CategoryInput(
        name="Objection Handling",
        slug="objection_handling",
        description="Addressing concerns about price, spouse consultation, timing, and maintaining momentum.",
        weight=20,
        sort_order=4,
        scoring_criteria=_criteria(
            "Ignored or argued with objections, or gave up at the first pushback.",
            "Acknowledged objections with generic responses; accepted stalls without follow-up.",
            "Addressed objections adequately but lost some momentum afterward.",
            "Used empathy and clarifying questions to resolve the root concern.",
            "Anticipated objections and turned them into reasons to buy.",
        ),
    ),
    CategoryInput(
        name="Compliance & Disclosures",
        slug="compliance_disclosures",
        description=(
            "Required statements, recording disclosure, citizenship verification, "
            "CareConnect clarification."
        ),
        weight=10,
        sort_order=5,
        scoring_criteria=_criteria(
            "Multiple critical compliance elements missing; high risk of violation.",
            "Some disclosures present but rushed or incomplete.",
            "All critical compliance elements present.",
            "Thorough compliance with clear explanations the customer understood.",
            "Disclosures delivered naturally and built trust through transparency.",
        ),
    ),
    CategoryInput(
        name="Closing & Enrollment",
        slug="closing_enrollment",
        description="Collecting information, processing enrollment, consent forms, handoff to verification.",
        weight=10,
        sort_order=6,
        scoring_criteria=_criteria(
            "No clear outcome, incomplete information, or no transfer to verification.",
            "Attempted close but gave up easily or rushed next steps.",
            "All information collected, consent forms explained, transferred to verification.",
            "Smooth close with clear explanation of emails and next steps.",
            "Close felt like a natural conclusion; customer confident about what happens next.",
        ),
    ),
]


def _flag(key, name, description, severity, sort_order, threshold_type="boolean", threshold_value=None):
    return RedFlagInput(
        flag_key=key,
        display_name=name,
        description=description,
        severity=severity,
        threshold_type=threshold_type,
        threshold_value=threshold_value,
        sort_order=sort_order,
    )


DEFAULT_RED_FLAGS: list[RedFlagInput] = [
    # Critical (immediate manager alert)
    _flag("ssn_before_citizenship", "SSN before citizenship verification",
          "Collected Social Security Number before verifying citizenship/residency status", "critical", 1),
    _flag("missing_recording_disclosure", "Missing recording disclosure",
          "Recording disclosure was completely absent from the call", "critical", 2),
    _flag("subsidy_guarantee_no_income", "Subsidy guarantee without income verification",
          "Made guarantees about specific subsidy amounts before verifying income", "critical", 3),
    _flag("payment_before_consent", "Payment before consent forms",
          "Collected payment information before sending and explaining consent forms", "critical", 4),
    # High (flag for review)
    _flag("aca_without_income", "ACA pitch without income verification",
          "Skipped income verification but still quoted an ACA plan", "high", 5),
    _flag("missing_careconnect_clarification", "Missing CareConnect clarification",
          "Did not mention this is NOT health insurance when discussing CareConnect benefits", "high", 6),
    _flag("missing_rogue_agent_warning", "Missing rogue agent warning",
          "Did not warn about rogue agents or duplicate plan picking on healthcare.gov", "high", 7),
    _flag("excessive_talk_ratio", "Excessive talk ratio",
          "Agent talk ratio exceeded threshold, indicating monologuing rather than conversation",
          "high", 8, threshold_type="percentage", threshold_value=70),
    # Medium (coaching opportunity)
    _flag("skipped_health_discovery", "Skipped health discovery",
          "Did not ask about pre-existing conditions or prescription medications", "medium", 9),
    _flag("skipped_doctor_preference", "Skipped doctor preference",
          "Did not ask about doctor preferences", "medium", 10),
    _flag("rushed_closing", "Rushed closing",
          "Rushed through closing without completing verbal confirmations", "medium", 11),
    _flag("no_enrollment_urgency", "No enrollment urgency",
          "Did not create appropriate urgency around the enrollment deadline", "medium", 12),
]


def default_rubric_input() -> RubricCreate:
    return RubricCreate(
        name=DEFAULT_RUBRIC_NAME,
        description=DEFAULT_RUBRIC_DESCRIPTION,
        categories=DEFAULT_CATEGORIES,
        red_flags=DEFAULT_RED_FLAGS,
    )
