from salescoach.schemas.intent import HandlerParams, HandlerResult
from salescoach.services import error_messages
from salescoach.services.handlers.base import HandlerContext, handler_boundary, success

DEFAULT_DEPARTMENT = "Agent"


@handler_boundary("fetch team summary")
async def handle_team_summary(ctx: HandlerContext, params: HandlerParams, message: str) -> HandlerResult:
    department = params.department or DEFAULT_DEPARTMENT
    summary = await ctx.calls.get_team_summary(department, params.start_date, params.end_date)

    data = {
        "department": department,
        "start_date": params.start_date.isoformat(),
        "end_date": params.end_date.isoformat(),
    }
    if not summary:
        return success(
            "team_summary",
            summary=None,
            message=error_messages.no_team_data(department, params.start_date, params.end_date),
            **data,
        )
    return success("team_summary", summary=summary.model_dump(mode="json"), **data)
