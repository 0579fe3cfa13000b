import re

from salescoach.schemas.intent import HandlerParams, HandlerResult
from salescoach.services.handlers.base import HandlerContext, handler_boundary, success
from salescoach.services.intent_classifier import is_greeting, is_help_request

GREETING_RESPONSE = (
    "Hi! I'm your sales coaching assistant. I can look up calls, agent stats, "
    "team summaries and transcripts, search call content, and give coaching "
    "feedback on a specific call. What would you like to know?"
)

HELP_RESPONSE = """Here's what you can ask me:

- **List calls**: "Show Sarah's calls from last week"
- **Agent stats**: "How is Bradley doing this month?"
- **Team summary**: "Give me a team overview"
- **Transcripts**: "Show the transcript for call abc123"
- **Search**: "Find calls where customers mentioned pricing"
- **Coaching**: "Coach me on call abc123"
"""

GENERAL_SYSTEM_PROMPT = (
    "You are a helpful sales coaching assistant for a call center. Answer briefly. "
    "If the user asks for data you cannot see, suggest one of: listing calls, "
    "agent stats, team summary, transcripts, searching calls, or coaching on a call."
)

_LIST_AGENTS = re.compile(r"\b(list|show|who are)\b.*\bagents?\b", re.IGNORECASE)


@handler_boundary("answer the question")
async def handle_general(ctx: HandlerContext, params: HandlerParams, message: str) -> HandlerResult:
    if is_greeting(message):
        return success("general", response=GREETING_RESPONSE)
    if is_help_request(message):
        return success("general", response=HELP_RESPONSE)

    if _LIST_AGENTS.search(message):
        agents = await ctx.agents.list_agents()
        return success(
            "agent_list",
            agent_count=len(agents),
            agents=[a.model_dump() for a in agents],
        )

    reply = await ctx.llm.chat(
        GENERAL_SYSTEM_PROMPT,
        message,
        max_tokens=ctx.general_max_tokens,
    )
    return success("general", response=reply.content)
