"""Classifies a chat message into an Intent with extracted parameters."""

import logging
import re
from typing import Any, Optional

from salescoach.schemas.intent import Intent, IntentClassification

logger = logging.getLogger(__name__)

CLASSIFICATION_SYSTEM_PROMPT = """You are an intent classifier. Your job is to analyze user messages and classify them into predefined categories.
You must respond ONLY with valid JSON. No explanations, no markdown, just the JSON object.
Be accurate and consistent in your classifications."""

INTENT_CLASSIFICATION_PROMPT = """You are an intent classifier for a sales coaching assistant.

Classify this user message and extract relevant parameters.

User message: "{message}"

Classify into ONE of these intents:
- LIST_CALLS: User wants to see a list of calls (e.g., "show me calls", "Bradley's calls", "recent calls", "calls longer than 20 minutes")
- AGENT_STATS: User wants performance metrics for a specific agent (e.g., "how is Bradley doing", "performance summary for John")
- TEAM_SUMMARY: User wants team-wide stats (e.g., "team performance", "how's the sales team doing", "overall stats")
- GET_TRANSCRIPT: User wants to see a specific call transcript (references a call_id or asks to "show me the transcript")
- SEARCH_CALLS: User wants to find calls by content (e.g., "find calls where customer objected", "search for calls about Medicare")
- COACHING: User wants coaching feedback on a call (e.g., "coaching tips", "how could they improve")
- GENERAL: General question, greeting, help request, or anything that doesn't fit above

Extract these parameters if present:
- agent_name: First name of agent mentioned (null if none). Examples: "Bradley", "John", "Maria"
- days_back: Time range in days. Default 7. Examples: "last week" = 7, "this month" = 30, "last 3 days" = 3, "today" = 1
- call_id: Specific call ID if mentioned (null if none). Usually a long alphanumeric string.
- search_query: What to search for if SEARCH_CALLS intent (null otherwise).
- min_duration_minutes: Minimum call length in minutes if the user asks for long calls (null otherwise).

Important rules:
1. If the user mentions a person's name, extract it as agent_name
2. If no time range is specified, default days_back to 7
3. For TEAM_SUMMARY, don't require an agent_name
4. For SEARCH_CALLS, extract the search content (what they want to find) as search_query
5. Be generous with partial name matches - "Brad" should be captured as "Brad"

Respond ONLY with valid JSON (no markdown, no explanation):
{{
  "intent": "INTENT_NAME",
  "agent_name": null | "Name",
  "days_back": 7,
  "call_id": null | "call-id-string",
  "search_query": null | "search query string",
  "min_duration_minutes": null | 20,
  "confidence": 0.0-1.0
}}"""

# Variations the model sometimes returns instead of the canonical tag
INTENT_SYNONYMS: dict[str, Intent] = {
    "LISTCALLS": Intent.LIST_CALLS,
    "CALLS": Intent.LIST_CALLS,
    "SHOWCALLS": Intent.LIST_CALLS,
    "AGENTSTATS": Intent.AGENT_STATS,
    "STATS": Intent.AGENT_STATS,
    "PERFORMANCE": Intent.AGENT_STATS,
    "TEAMSUMMARY": Intent.TEAM_SUMMARY,
    "TEAM": Intent.TEAM_SUMMARY,
    "GETTRANSCRIPT": Intent.GET_TRANSCRIPT,
    "TRANSCRIPT": Intent.GET_TRANSCRIPT,
    "SEARCHCALLS": Intent.SEARCH_CALLS,
    "SEARCH": Intent.SEARCH_CALLS,
    "FIND": Intent.SEARCH_CALLS,
    "COACH": Intent.COACHING,
    "FEEDBACK": Intent.COACHING,
}

GREETINGS = ["hello", "hi", "hey", "good morning", "good afternoon", "good evening", "howdy"]
HELP_PHRASES = ["help", "what can you do", "how do i", "can you help", "capabilities"]

DEFAULT_DAYS_BACK = 7
DEFAULT_CONFIDENCE = 0.5

_NON_TAG_CHARS = re.compile(r"[^A-Z_]")


class ClassificationResponseError(Exception):
    """The classifier model returned JSON of the wrong shape."""


def build_intent_prompt(message: str) -> str:
    return INTENT_CLASSIFICATION_PROMPT.format(message=message)


def normalize_intent(raw_intent: Any) -> Intent:
    """Map a model-provided intent string onto the closed Intent set."""
    if not isinstance(raw_intent, str):
        return Intent.GENERAL
    tag = _NON_TAG_CHARS.sub("", raw_intent.upper())
    if tag in Intent.__members__:
        return Intent[tag]
    return INTENT_SYNONYMS.get(tag, Intent.GENERAL)


def is_greeting(message: str) -> bool:
    lower = message.lower().strip()
    return any(lower == g or lower.startswith(g) for g in GREETINGS)


def is_help_request(message: str) -> bool:
    lower = message.lower().strip()
    return any(h in lower for h in HELP_PHRASES)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ClassificationResponseError(f"Expected a string or null, got {value!r}")
    return value.strip() or None


def _positive_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ClassificationResponseError(f"Expected a number or null, got {value!r}")
    return float(value) if value > 0 else None


def _days_back(value: Any) -> int:
    number = _positive_number(value)
    if number is None:
        return DEFAULT_DAYS_BACK
    return max(1, int(round(number)))


def _confidence(value: Any) -> float:
    number = _positive_number(value)
    if number is None:
        return DEFAULT_CONFIDENCE
    return min(1.0, number)


def parse_classification(raw: Any) -> IntentClassification:
    """Turn the classifier's JSON into an IntentClassification, filling defaults."""
    if not isinstance(raw, dict):
        raise ClassificationResponseError(f"Expected a JSON object, got {type(raw).__name__}")

    return IntentClassification(
        intent=normalize_intent(raw.get("intent")),
        agent_name=_optional_str(raw.get("agent_name")),
        days_back=_days_back(raw.get("days_back")),
        call_id=_optional_str(raw.get("call_id")),
        search_query=_optional_str(raw.get("search_query")),
        min_duration_minutes=_positive_number(raw.get("min_duration_minutes")),
        confidence=_confidence(raw.get("confidence")),
    )


class IntentClassifier:
    def __init__(self, llm, max_tokens: int = 256):
        self.llm = llm
        self.max_tokens = max_tokens

    async def classify(self, message: str) -> IntentClassification:
        """Classify a message. Never raises: any failure yields the GENERAL fallback."""
        try:
            raw = await self.llm.chat_json(
                CLASSIFICATION_SYSTEM_PROMPT,
                build_intent_prompt(message),
                max_tokens=self.max_tokens,
            )
            classification = parse_classification(raw)
        except Exception as e:
            logger.warning(f"Intent classification failed, falling back to GENERAL: {e}")
            return IntentClassification.fallback()

        logger.info(
            f"Intent classification: intent={classification.intent.value}, "
            f"agent_name={classification.agent_name}, days_back={classification.days_back}, "
            f"confidence={classification.confidence}"
        )
        return classification
