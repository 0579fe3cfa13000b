"""Render handler data as chat markdown. Output is deterministic for a given input."""

from typing import Any, Optional

from salescoach.schemas.call import format_duration
from salescoach.schemas.intent import Intent

MAX_CALL_ROWS = 10
MAX_TRANSCRIPT_TURNS = 50
MAX_SEARCH_HITS = 5
EXCERPT_CHARS = 100


def _pct(value: Optional[float]) -> str:
    return f"{value:.0f}%" if value is not None else "N/A"


def _date_range(data: dict) -> str:
    return f"{data.get('start_date')} to {data.get('end_date')}"


class ResponseFormatter:
    def format(self, intent: Intent, data: Optional[dict[str, Any]]) -> str:
        if not data:
            return "No data available."
        if data.get("message"):
            return data["message"]

        data_type = data.get("type")
        if data_type == "agent_list":
            return self._agent_list(data)

        formatter = {
            Intent.LIST_CALLS: self._call_list,
            Intent.AGENT_STATS: self._agent_stats,
            Intent.TEAM_SUMMARY: self._team_summary,
            Intent.GET_TRANSCRIPT: self._transcript,
            Intent.SEARCH_CALLS: self._search_results,
            Intent.COACHING: self._coaching,
        }.get(intent)
        if formatter is None:
            return data.get("response", "")
        return formatter(data)

    def _call_list(self, data: dict) -> str:
        calls = data.get("calls", [])
        view_type = data.get("view_type")
        if view_type == "long_calls":
            header = f"Calls longer than {data.get('min_duration_minutes'):g} minutes"
        elif view_type == "all_agents":
            header = "Recent calls across all agents"
        else:
            header = f"Here are {data.get('agent_name')}'s calls"
        header = f"{header} ({_date_range(data)}):"

        if not calls:
            return f"{header}\n\nNo calls found."

        lines = [header, ""]
        for call in calls[:MAX_CALL_ROWS]:
            direction = "inbound" if call.get("is_inbound_call") else "outbound"
            agent = f" - {call['agent_name']}" if view_type != "agent" and call.get("agent_name") else ""
            lines.append(
                f"- {call['call_date']}{agent}: {call['total_duration_formatted']} "
                f"({direction}) `{call['call_id']}`"
            )
        if len(calls) > MAX_CALL_ROWS:
            lines.append(f"\n...and {len(calls) - MAX_CALL_ROWS} more.")
        lines.append(f"\n**{len(calls)} calls total.** Ask for a transcript or coaching on any call.")
        return "\n".join(lines)

    def _agent_stats(self, data: dict) -> str:
        perf = data.get("performance") or {}
        lines = [
            f"Performance stats for **{data.get('agent_name')}** ({_date_range(data)}):",
            "",
            f"- Total calls: {perf.get('total_calls', 0)}",
            f"- Inbound / outbound: {perf.get('inbound_calls', 0)} / {perf.get('outbound_calls', 0)}",
            f"- Average duration: {perf.get('avg_duration_formatted', '0:00')}",
            f"- Agent talk ratio: {_pct(perf.get('avg_agent_talk_percentage'))}",
            f"- Customer talk ratio: {_pct(perf.get('avg_customer_talk_percentage'))}",
        ]
        daily = data.get("daily_calls") or []
        if daily:
            lines += ["", "**Daily calls:**"]
            lines += [f"- {d['call_date']}: {d['call_count']}" for d in daily]
        return "\n".join(lines)

    def _team_summary(self, data: dict) -> str:
        summary = data.get("summary") or {}
        lines = [
            f"Team summary for **{data.get('department')}** ({_date_range(data)}):",
            "",
            f"- Total calls: {summary.get('total_calls', 0)}",
            f"- Active agents: {summary.get('active_agents', 0)}",
            f"- Average duration: {summary.get('avg_duration_formatted', '0:00')}",
            f"- Agent talk ratio: {_pct(summary.get('avg_agent_talk_percentage'))}",
        ]
        agents = summary.get("agents") or []
        if agents:
            lines += ["", "| Agent | Calls | Avg duration | Talk ratio |", "|---|---|---|---|"]
            for agent in agents:
                lines.append(
                    f"| {agent['agent_name']} | {agent['total_calls']} | "
                    f"{format_duration(agent['avg_duration_seconds'])} | "
                    f"{_pct(agent.get('avg_agent_talk_percentage'))} |"
                )
        return "\n".join(lines)

    def _transcript(self, data: dict) -> str:
        turns = data.get("turns") or []
        lines = [
            f"Transcript for call `{data.get('call_id')}` with **{data.get('agent_name')}** "
            f"on {data.get('call_date')} ({data.get('duration')}):",
            "",
        ]
        lines += [f"**{t['speaker']}:** {t['text']}" for t in turns[:MAX_TRANSCRIPT_TURNS]]
        if len(turns) > MAX_TRANSCRIPT_TURNS:
            lines.append(f"\n...{len(turns) - MAX_TRANSCRIPT_TURNS} more turns.")
        return "\n".join(lines)

    def _search_results(self, data: dict) -> str:
        results = data.get("results") or []
        header = f'Search results for "{data.get("search_query")}" ({data.get("result_count", 0)} calls):'
        lines = []
        for hit in results[:MAX_SEARCH_HITS]:
            excerpt = hit.get("excerpt", "")
            if len(excerpt) > EXCERPT_CHARS:
                excerpt = excerpt[:EXCERPT_CHARS] + "..."
            agent = hit.get("agent_name") or "Unknown"
            lines.append(f"- Call `{hit['call_id']}` ({agent}, {hit['call_date']}): \"{excerpt}\"")
        return header + "\n\n" + "\n".join(lines)

    def _coaching(self, data: dict) -> str:
        lines = [data.get("summary") or ""]
        if data.get("has_critical_flags"):
            flags = ", ".join(data.get("red_flags", {}).get("critical", []))
            lines.append(f"\n**Critical red flags:** {flags}")
        lines.append(
            f"\n**Overall score:** {data.get('overall_score')} ({data.get('performance_level')})"
        )
        return "\n".join(lines).strip()

    def _agent_list(self, data: dict) -> str:
        agents = data.get("agents") or []
        if not agents:
            return "No agents found."
        lines = [f"There are {len(agents)} agents:", ""]
        for agent in agents:
            name = " ".join(p for p in (agent.get("first_name"), agent.get("last_name")) if p)
            dept = f" ({agent['department']})" if agent.get("department") else ""
            lines.append(f"- {name}{dept}")
        return "\n".join(lines)
