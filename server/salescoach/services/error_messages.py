"""User-facing wording for handler failures.

Handlers return these strings inside a failed HandlerResult rather than
raising, so the chat envelope never carries a raw exception.
"""

import logging
from datetime import date

from salescoach.schemas.intent import HandlerResult

logger = logging.getLogger(__name__)


def _short_id(call_id: str) -> str:
    return f"{call_id[:8]}..." if len(call_id) > 8 else call_id


def agent_not_found(name: str) -> str:
    return (
        f'I couldn\'t find an agent named "{name}". Try checking the spelling, '
        'or you can say "show agents" to see the full list.'
    )


def agent_required() -> str:
    return (
        "Please specify which agent you'd like to see. You can use their name "
        '(e.g., "how is Sarah doing?").'
    )


def call_required() -> str:
    return (
        "Please specify which call you'd like to see. You can provide a call ID, "
        'or first list an agent\'s calls by asking something like "show Sarah\'s calls."'
    )


def call_not_found(call_id: str) -> str:
    return f'Could not find a call with ID "{call_id}".'


def transcript_not_found(call_id: str) -> str:
    return (
        f'Could not find transcript data for call "{_short_id(call_id)}". '
        "The transcript may not have been processed yet."
    )


def coaching_call_required() -> str:
    return (
        "To provide coaching feedback, I need a specific call to analyze. You can "
        "provide a call ID, or first list an agent's calls and then ask for coaching "
        "on one of them."
    )


def search_query_required() -> str:
    return (
        'Please tell me what you\'d like to search for. For example: "search for calls '
        'about pricing" or "find calls where the customer mentioned competitors."'
    )


def no_search_results(query: str) -> str:
    return (
        f'No calls matched "{query}". Try broadening your search terms, '
        "or check if the time period is correct."
    )


def no_agent_stats(agent_name: str, start_date: date, end_date: date) -> str:
    return (
        f"No calls found for {agent_name} between {start_date} and {end_date}. "
        f"Try expanding the date range, or check if {agent_name} has any recorded calls."
    )


def no_team_data(department: str, start_date: date, end_date: date) -> str:
    return (
        f"No call data found for the {department} team between {start_date} and "
        f"{end_date}. Try expanding the date range."
    )


def format_error(message: str) -> HandlerResult:
    return HandlerResult(success=False, data=None, error=message)


def operation_failed(operation: str, exc: BaseException) -> HandlerResult:
    """Convert an upstream failure into the handler's failed result."""
    logger.error(f"Failed to {operation}: {exc}")
    return format_error(f"Failed to {operation}: {exc}")
