import json
import logging
from typing import Optional

from salescoach.schemas.coaching import CoachingVariables
from salescoach.schemas.intent import HandlerParams, HandlerResult
from salescoach.services import error_messages
from salescoach.services.coaching_prompts import (
    build_summary_prompt,
    compile_coaching_prompt,
    compile_static_coaching_prompt,
    parse_coaching_analysis,
)
from salescoach.services.handlers.base import HandlerContext, handler_boundary, success

logger = logging.getLogger(__name__)


def _ratio(value: Optional[float]) -> str:
    return f"{value:.0f}" if value is not None else "0"


@handler_boundary("generate coaching feedback")
async def handle_coaching(ctx: HandlerContext, params: HandlerParams, message: str) -> HandlerResult:
    call_id = params.call_id
    if not call_id:
        return error_messages.format_error(error_messages.coaching_call_required())

    call = await ctx.calls.get_call_by_id(call_id)
    if not call:
        return error_messages.format_error(error_messages.call_not_found(call_id))

    transcript = await ctx.calls.get_call_transcript(call_id)
    if not transcript or not transcript.full_transcript.strip():
        return error_messages.format_error(error_messages.transcript_not_found(call_id))

    agent_name = transcript.agent_name or call.agent_name or "Unknown"
    variables = CoachingVariables(
        agent_name=agent_name,
        call_date=call.call_date.isoformat(),
        duration=call.total_duration_formatted,
        customer_talk_ratio=_ratio(call.customer_talk_percentage),
        agent_talk_ratio=_ratio(call.agent_talk_percentage),
        transcript=transcript.full_transcript,
    )

    # One snapshot per request, so an activation mid-request cannot mix rubrics
    rubric = await ctx.rubrics.get_active_config()
    if rubric:
        compiled = compile_coaching_prompt(rubric, variables)
        logger.info(f"Coaching call {call_id} with rubric '{rubric.name}' v{rubric.version}")
    else:
        compiled = compile_static_coaching_prompt(variables)
        logger.info(f"No active rubric, coaching call {call_id} with built-in categories")

    raw = await ctx.llm.chat_json(
        compiled.system_prompt,
        compiled.analysis_prompt,
        max_tokens=ctx.analysis_max_tokens,
    )
    analysis = parse_coaching_analysis(raw, compiled)

    if analysis.has_critical_flags:
        logger.warning(f"Critical red flags on call {call_id}: {analysis.red_flags.critical}")

    summary_prompt = build_summary_prompt(
        compiled,
        json.dumps(analysis.model_dump(), indent=2),
        agent_name=agent_name,
        call_date=variables.call_date,
        duration=variables.duration,
    )
    summary = await ctx.llm.chat(
        compiled.system_prompt,
        summary_prompt,
        max_tokens=ctx.summary_max_tokens,
    )

    return success(
        "coaching",
        call_id=call_id,
        agent_name=agent_name,
        agent_user_id=call.agent_user_id,
        call_date=variables.call_date,
        duration=variables.duration,
        scores=analysis.scores,
        overall_score=analysis.overall_score,
        performance_level=analysis.performance_level,
        strengths=analysis.strengths,
        improvements=analysis.improvements,
        action_items=analysis.action_items,
        red_flags=analysis.red_flags.model_dump(),
        notable_moments=[m.model_dump() for m in analysis.notable_moments],
        has_critical_flags=analysis.has_critical_flags,
        summary=summary.content,
        categories=[
            {"slug": slug, "name": name, "weight": weight} for slug, name, weight in compiled.categories
        ],
        rubric_config_id=compiled.rubric_config_id,
        rubric_version=compiled.rubric_version,
        rubric_name=compiled.rubric_name,
    )
