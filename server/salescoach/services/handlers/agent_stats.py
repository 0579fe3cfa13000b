from salescoach.schemas.intent import HandlerParams, HandlerResult
from salescoach.services import error_messages
from salescoach.services.handlers.base import HandlerContext, handler_boundary, success


@handler_boundary("fetch agent stats")
async def handle_agent_stats(ctx: HandlerContext, params: HandlerParams, message: str) -> HandlerResult:
    if params.resolution_error:
        return error_messages.format_error(params.resolution_error)
    if params.unresolved_agent_name:
        return error_messages.format_error(error_messages.agent_not_found(params.unresolved_agent_name))
    if not params.agent_id:
        return error_messages.format_error(error_messages.agent_required())

    agent_name = params.agent_name
    if not agent_name:
        agent = await ctx.agents.get_agent_by_id(params.agent_id)
        agent_name = agent.first_name if agent else "Unknown"

    common = {
        "agent_name": agent_name,
        "agent_user_id": params.agent_id,
        "start_date": params.start_date.isoformat(),
        "end_date": params.end_date.isoformat(),
    }

    performance = await ctx.calls.get_agent_performance(params.agent_id, params.start_date, params.end_date)
    if not performance:
        return success(
            "agent_stats",
            performance=None,
            daily_calls=[],
            message=error_messages.no_agent_stats(agent_name, params.start_date, params.end_date),
            **common,
        )

    daily = await ctx.calls.get_agent_daily_calls(params.agent_id, params.start_date, params.end_date)
    return success(
        "agent_stats",
        performance=performance.model_dump(mode="json"),
        daily_calls=[d.model_dump(mode="json") for d in daily],
        **common,
    )
