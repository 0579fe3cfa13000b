import re

from salescoach.schemas.intent import HandlerParams, HandlerResult
from salescoach.services import error_messages
from salescoach.services.handlers.base import HandlerContext, handler_boundary, success

# "Speaker: text" at the start of a transcript line
_TURN = re.compile(r"^\s*([A-Za-z][\w .'-]{0,40}):\s*(.*)$")


def parse_transcript_turns(full_transcript: str) -> list[dict]:
    """Split a plain-text transcript into speaker turns.

    Lines without a speaker prefix are appended to the previous turn.
    """
    turns: list[dict] = []
    for line in full_transcript.splitlines():
        if not line.strip():
            continue
        m = _TURN.match(line)
        if m:
            turns.append({"turn": len(turns) + 1, "speaker": m.group(1).strip(), "text": m.group(2).strip()})
        elif turns:
            turns[-1]["text"] = f"{turns[-1]['text']} {line.strip()}".strip()
        else:
            turns.append({"turn": 1, "speaker": "Unknown", "text": line.strip()})
    return turns


@handler_boundary("fetch transcript")
async def handle_get_transcript(ctx: HandlerContext, params: HandlerParams, message: str) -> HandlerResult:
    call_id = params.call_id
    if not call_id:
        return error_messages.format_error(error_messages.call_required())

    call = await ctx.calls.get_call_by_id(call_id)
    if not call:
        return error_messages.format_error(error_messages.call_not_found(call_id))

    transcript = await ctx.calls.get_call_transcript(call_id)
    if not transcript or not transcript.full_transcript:
        return error_messages.format_error(error_messages.transcript_not_found(call_id))

    return success(
        "transcript",
        call_id=call_id,
        agent_name=transcript.agent_name or call.agent_name or "Unknown",
        agent_user_id=call.agent_user_id,
        call_date=call.call_date.isoformat(),
        duration=call.total_duration_formatted,
        is_inbound=call.is_inbound_call,
        talk_ratio={
            "agent": call.agent_talk_percentage,
            "customer": call.customer_talk_percentage,
        },
        total_turns=call.total_turns,
        turns=parse_transcript_turns(transcript.full_transcript),
    )
