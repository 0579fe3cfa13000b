"""Tests for the intent handlers and the dispatcher."""

from dataclasses import replace
from datetime import timedelta

import pytest

from conftest import BRADLEY_TRANSCRIPT, TODAY, FakeEmbeddings, ScriptedLLM, StaticRubrics
from salescoach.schemas.intent import HandlerParams, HandlerResult, Intent
from salescoach.schemas.rubric import RubricConfig
from salescoach.services.default_rubric import DEFAULT_CATEGORIES
from salescoach.services.handlers import HANDLERS, HandlerDispatcher
from salescoach.services.handlers.agent_stats import handle_agent_stats
from salescoach.services.handlers.coaching import handle_coaching
from salescoach.services.handlers.general import GREETING_RESPONSE, HELP_RESPONSE, handle_general
from salescoach.services.handlers.get_transcript import handle_get_transcript, parse_transcript_turns
from salescoach.services.handlers.list_calls import handle_list_calls
from salescoach.services.handlers.search_calls import handle_search_calls
from salescoach.services.handlers.team_summary import handle_team_summary


def params(**overrides) -> HandlerParams:
    data = {"start_date": TODAY - timedelta(days=7), "end_date": TODAY}
    data.update(overrides)
    return HandlerParams(**data)


def rubric_config() -> RubricConfig:
    return RubricConfig.model_validate({
        "id": "rubric-7",
        "name": "Two Category Rubric",
        "version": 7,
        "is_active": True,
        "is_draft": False,
        "categories": [
            {"name": "Discovery", "slug": "discovery", "weight": 70, "sort_order": 1},
            {"name": "Closing", "slug": "closing", "weight": 30, "sort_order": 2},
        ],
        "red_flags": [
            {"flag_key": "no_disclosure", "display_name": "No disclosure", "description": "d", "severity": "critical"},
        ],
    })


def coaching_json(scores: dict, critical=None) -> dict:
    return {
        "scores": scores,
        "overall_score": 3.0,
        "performance_level": "Developing",
        "strengths": ["Clear intro"],
        "improvements": ["Dig deeper on needs"],
        "action_items": ["Ask about dependents"],
        "red_flags": {"critical": critical or [], "high": [], "medium": []},
        "notable_moments": [],
    }


class TestListCalls:
    async def test_agent_scoped(self, make_context):
        result = await handle_list_calls(
            make_context(), params(agent_id="agent-bradley", agent_name="Bradley"), "Bradley's calls"
        )

        assert result.success is True
        assert result.data["type"] == "call_list"
        assert result.data["view_type"] == "agent"
        assert [c["call_id"] for c in result.data["calls"]] == ["call-b1", "call-b2"]

    async def test_all_agents_when_no_agent_named(self, make_context):
        result = await handle_list_calls(make_context(), params(), "recent calls")

        assert result.data["view_type"] == "all_agents"
        assert "call-old" not in {c["call_id"] for c in result.data["calls"]}
        assert result.data["call_count"] == 4

    async def test_request_limit_caps_the_list(self, make_context):
        result = await handle_list_calls(make_context(), params(limit=2), "recent calls")

        assert result.success is True
        assert result.data["call_count"] == 2
        assert len(result.data["calls"]) == 2

    async def test_unresolved_agent_fails(self, make_context):
        result = await handle_list_calls(make_context(), params(unresolved_agent_name="Zzyx"), "Zzyx calls")

        assert result.success is False
        assert "Zzyx" in result.error

    async def test_duration_filter_ignores_agent_scope(self, make_context):
        result = await handle_list_calls(
            make_context(),
            params(agent_id="agent-sarah", min_duration_minutes=20, unresolved_agent_name=None),
            "calls longer than 20 minutes",
        )

        assert result.success is True
        assert result.data["view_type"] == "long_calls"
        # Bradley's 25 minute call, even though Sarah was targeted
        assert [c["call_id"] for c in result.data["calls"]] == ["call-b1"]

    async def test_unresolved_name_fails_even_with_duration_filter(self, make_context):
        result = await handle_list_calls(
            make_context(), params(unresolved_agent_name="Zzyx", min_duration_minutes=20), "Zzyx calls over 20 minutes"
        )

        assert result.success is False
        assert result.data is None
        assert "Zzyx" in result.error

    async def test_store_failure_is_converted(self, make_context):
        class BrokenCalls:
            async def get_recent_calls(self, *args, **kwargs):
                raise RuntimeError("connection reset")

        ctx = replace(make_context(), calls=BrokenCalls())

        result = await handle_list_calls(ctx, params(), "recent calls")

        assert result == HandlerResult(success=False, data=None, error="Failed to fetch calls: connection reset")


class TestAgentStats:
    async def test_returns_performance_and_daily_breakdown(self, make_context):
        result = await handle_agent_stats(
            make_context(), params(agent_id="agent-bradley", agent_name="Bradley"), "how is Bradley"
        )

        assert result.success is True
        assert result.data["agent_name"] == "Bradley"
        assert result.data["performance"]["total_calls"] == 2
        assert result.data["performance"]["inbound_calls"] == 1
        assert len(result.data["daily_calls"]) == 2

    async def test_requires_an_agent(self, make_context):
        result = await handle_agent_stats(make_context(), params(), "stats")

        assert result.success is False
        assert "specify which agent" in result.error

    async def test_unresolved_name(self, make_context):
        result = await handle_agent_stats(make_context(), params(unresolved_agent_name="Zzyx"), "Zzyx stats")

        assert result.success is False
        assert "Zzyx" in result.error

    async def test_resolution_error_is_surfaced(self, make_context):
        result = await handle_agent_stats(
            make_context(),
            params(unresolved_agent_name="Brad", resolution_error="Failed to resolve agent name: db down"),
            "Brad stats",
        )

        assert result.error == "Failed to resolve agent name: db down"

    async def test_empty_period_is_a_message(self, make_context):
        result = await handle_agent_stats(
            make_context(),
            params(agent_id="agent-sarah", agent_name="Sarah", start_date=TODAY - timedelta(days=400), end_date=TODAY - timedelta(days=300)),
            "Sarah last year",
        )

        assert result.success is True
        assert result.data["performance"] is None
        assert "No calls found for Sarah" in result.data["message"]


class TestTeamSummary:
    async def test_defaults_to_agent_department(self, make_context):
        result = await handle_team_summary(make_context(), params(), "team")

        assert result.data["department"] == "Agent"
        assert result.data["summary"]["total_calls"] == 3
        assert result.data["summary"]["active_agents"] == 2

    async def test_named_department(self, make_context):
        result = await handle_team_summary(make_context(), params(department="Retention"), "team")

        assert result.data["summary"]["active_agents"] == 1

    async def test_no_data(self, make_context):
        result = await handle_team_summary(make_context(), params(department="Nobody"), "team")

        assert result.success is True
        assert result.data["summary"] is None
        assert "Nobody" in result.data["message"]


class TestGetTranscript:
    def test_parse_turns(self):
        turns = parse_transcript_turns("Agent: Hello\n\nCustomer: Hi there\nstill talking\n")

        assert turns == [
            {"turn": 1, "speaker": "Agent", "text": "Hello"},
            {"turn": 2, "speaker": "Customer", "text": "Hi there still talking"},
        ]

    async def test_returns_turns(self, make_context):
        result = await handle_get_transcript(make_context(), params(call_id="call-b1"), "transcript")

        assert result.success is True
        assert result.data["agent_name"] == "Bradley"
        assert len(result.data["turns"]) == len(BRADLEY_TRANSCRIPT.splitlines())

    async def test_requires_call_id(self, make_context):
        result = await handle_get_transcript(make_context(), params(), "transcript")

        assert result.success is False
        assert "which call" in result.error

    async def test_unknown_call(self, make_context):
        result = await handle_get_transcript(make_context(), params(call_id="nope"), "transcript")

        assert result.error == 'Could not find a call with ID "nope".'

    async def test_missing_transcript(self, make_context):
        result = await handle_get_transcript(make_context(), params(call_id="call-no-transcript"), "transcript")

        assert "transcript data" in result.error


class TestSearchCalls:
    async def test_semantic_search(self, make_context):
        result = await handle_search_calls(make_context(), params(search_query="pricing"), "find pricing")

        assert result.data["search_type"] == "semantic"
        assert [r["call_id"] for r in result.data["results"]] == ["call-b1"]

    async def test_falls_back_to_text_search(self, make_context):
        result = await handle_search_calls(make_context(), params(search_query="budget"), "find budget")

        assert result.data["search_type"] == "text"
        assert result.data["results"][0]["call_id"] == "call-b1"

    async def test_no_results(self, make_context):
        result = await handle_search_calls(make_context(), params(search_query="medicare"), "find medicare")

        assert result.success is True
        assert result.data["result_count"] == 0
        assert "medicare" in result.data["message"]

    async def test_unresolved_agent_searches_unscoped(self, make_context):
        result = await handle_search_calls(
            make_context(), params(search_query="pricing", unresolved_agent_name="Zzyx"), "Zzyx pricing"
        )

        assert result.success is True
        assert result.data["result_count"] == 1

    async def test_requires_query(self, make_context):
        result = await handle_search_calls(make_context(), params(), "search")

        assert result.success is False

    async def test_embedding_failure_is_converted(self, make_context):
        class BrokenEmbeddings(FakeEmbeddings):
            async def embed(self, text):
                raise RuntimeError("rate limited")

        result = await handle_search_calls(
            make_context(embeddings=BrokenEmbeddings()), params(search_query="pricing"), "find pricing"
        )

        assert result.error == "Failed to search calls: rate limited"


class TestCoaching:
    async def test_uses_active_rubric(self, make_context):
        rubrics = StaticRubrics(rubric_config())
        llm = ScriptedLLM(
            json_responses=[coaching_json({"discovery": 4, "closing": 3})],
            text_responses=["Great call, Bradley!"],
        )

        result = await handle_coaching(make_context(llm=llm, rubrics=rubrics), params(call_id="call-b1"), "coach")

        assert result.success is True
        data = result.data
        assert data["scores"] == {"discovery": 4, "closing": 3}
        # 4 * 0.7 + 3 * 0.3
        assert data["overall_score"] == 3.7
        assert data["performance_level"] == "Solid Performer"
        assert data["summary"] == "Great call, Bradley!"
        assert data["rubric_config_id"] == "rubric-7"
        assert data["rubric_version"] == 7
        assert data["has_critical_flags"] is False
        assert rubrics.lookups == 1
        assert "discovery × 0.70 + closing × 0.30" in llm.json_calls[0][1]
        assert "- Customer Talk Ratio: 40%\n" in llm.json_calls[0][1]
        assert "- Agent Talk Ratio: 60%\n" in llm.json_calls[0][1]
        assert '"discovery": 4' in llm.text_calls[0][1]

    async def test_falls_back_to_static_rubric(self, make_context):
        scores = {c.slug: 3 for c in DEFAULT_CATEGORIES}
        llm = ScriptedLLM(json_responses=[coaching_json(scores)], text_responses=["Summary"])

        result = await handle_coaching(make_context(llm=llm), params(call_id="call-b1"), "coach")

        assert result.success is True
        assert result.data["rubric_config_id"] is None
        assert result.data["overall_score"] == 3.0
        assert set(result.data["scores"]) == set(scores)

    async def test_critical_flags_reported(self, make_context):
        llm = ScriptedLLM(
            json_responses=[coaching_json({"discovery": 2, "closing": 2}, critical=["no_disclosure"])],
            text_responses=["Summary"],
        )

        result = await handle_coaching(
            make_context(llm=llm, rubrics=StaticRubrics(rubric_config())), params(call_id="call-b1"), "coach"
        )

        assert result.data["has_critical_flags"] is True
        assert result.data["red_flags"]["critical"] == ["no_disclosure"]

    async def test_requires_call_id(self, make_context):
        llm = ScriptedLLM()

        result = await handle_coaching(make_context(llm=llm), params(), "coach me")

        assert result.success is False
        assert "specific call" in result.error
        assert llm.json_calls == []

    async def test_missing_call_and_missing_transcript_differ(self, make_context):
        ctx = make_context()

        no_call = await handle_coaching(ctx, params(call_id="nope"), "coach")
        no_transcript = await handle_coaching(ctx, params(call_id="call-no-transcript"), "coach")

        assert no_call.success is False
        assert no_transcript.success is False
        assert no_call.error != no_transcript.error
        assert "transcript" in no_transcript.error

    async def test_summary_failure_fails_the_handler(self, make_context):
        llm = ScriptedLLM(
            json_responses=[coaching_json({"discovery": 4, "closing": 3})],
            text_responses=[RuntimeError("overloaded")],
        )

        result = await handle_coaching(
            make_context(llm=llm, rubrics=StaticRubrics(rubric_config())), params(call_id="call-b1"), "coach"
        )

        assert result == HandlerResult(
            success=False, data=None, error="Failed to generate coaching feedback: overloaded"
        )

    async def test_invalid_analysis_fails_before_summary(self, make_context):
        llm = ScriptedLLM(json_responses=[coaching_json({"discovery": 9})], text_responses=["never used"])

        result = await handle_coaching(
            make_context(llm=llm, rubrics=StaticRubrics(rubric_config())), params(call_id="call-b1"), "coach"
        )

        assert result.success is False
        assert result.error.startswith("Failed to generate coaching feedback:")
        assert llm.text_calls == []


class TestGeneral:
    async def test_greeting(self, make_context):
        result = await handle_general(make_context(), params(), "Hello there")

        assert result.data["response"] == GREETING_RESPONSE

    async def test_help(self, make_context):
        result = await handle_general(make_context(), params(), "what can you do?")

        assert result.data["response"] == HELP_RESPONSE

    async def test_list_agents(self, make_context):
        result = await handle_general(make_context(), params(), "show me the agents")

        assert result.data["type"] == "agent_list"
        assert [a["first_name"] for a in result.data["agents"]] == ["Bradley", "Maria", "Sarah"]

    async def test_other_questions_go_to_the_model(self, make_context):
        llm = ScriptedLLM(text_responses=["Talk ratio is the share of time each side speaks."])

        result = await handle_general(make_context(llm=llm), params(), "what is talk ratio?")

        assert result.data["response"] == "Talk ratio is the share of time each side speaks."


class TestDispatcher:
    def test_default_table_covers_every_intent(self):
        assert set(HANDLERS) == set(Intent)

    def test_incomplete_table_rejected(self, make_context):
        partial = {k: v for k, v in HANDLERS.items() if k != Intent.COACHING}

        with pytest.raises(ValueError, match="COACHING"):
            HandlerDispatcher(make_context(), partial)

    async def test_routes_to_handler(self, make_context):
        dispatcher = HandlerDispatcher(make_context())

        result = await dispatcher.dispatch(Intent.TEAM_SUMMARY, params(), "team")

        assert result.data["type"] == "team_summary"
