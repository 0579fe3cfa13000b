from salescoach.schemas.intent import HandlerParams, HandlerResult
from salescoach.services import error_messages
from salescoach.services.handlers.base import HandlerContext, handler_boundary, success


def _dump(calls) -> list[dict]:
    return [c.model_dump(mode="json") for c in calls]


@handler_boundary("fetch calls")
async def handle_list_calls(ctx: HandlerContext, params: HandlerParams, message: str) -> HandlerResult:
    limit = params.limit or ctx.list_limit
    common = {
        "start_date": params.start_date.isoformat(),
        "end_date": params.end_date.isoformat(),
    }

    if params.resolution_error:
        return error_messages.format_error(params.resolution_error)
    if params.unresolved_agent_name:
        return error_messages.format_error(error_messages.agent_not_found(params.unresolved_agent_name))

    # Duration filters are cross-agent: a resolved agent is ignored
    if params.min_duration_minutes:
        calls = await ctx.calls.get_calls_by_duration(
            params.min_duration_minutes * 60, params.start_date, params.end_date, limit
        )
        return success(
            "call_list",
            agent_name=None,
            agent_user_id=None,
            call_count=len(calls),
            calls=_dump(calls),
            view_type="long_calls",
            min_duration_minutes=params.min_duration_minutes,
            **common,
        )

    if not params.agent_id:
        calls = await ctx.calls.get_recent_calls(params.start_date, params.end_date, limit)
        return success(
            "call_list",
            agent_name=None,
            agent_user_id=None,
            call_count=len(calls),
            calls=_dump(calls),
            view_type="all_agents",
            **common,
        )

    agent_name = params.agent_name
    if not agent_name:
        agent = await ctx.agents.get_agent_by_id(params.agent_id)
        agent_name = agent.first_name if agent else "Unknown"

    calls = await ctx.calls.get_agent_calls(params.agent_id, params.start_date, params.end_date, limit)
    return success(
        "call_list",
        agent_name=agent_name,
        agent_user_id=params.agent_id,
        call_count=len(calls),
        calls=_dump(calls),
        view_type="agent",
        **common,
    )
