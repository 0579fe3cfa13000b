"""Tests for the database-backed agent directory, call store and search store."""

from datetime import timedelta

import pytest

from conftest import TODAY
from salescoach.schemas.call import format_duration
from salescoach.services.agent_directory import AgentDirectory, name_similarity
from salescoach.services.call_store import CallStore
from salescoach.services.embedding_client import cosine_similarity
from salescoach.services.search_store import SearchStore

WEEK_AGO = TODAY - timedelta(days=7)


class TestNameSimilarity:
    def test_exact_match(self):
        assert name_similarity("bradley", "Bradley") == 1.0

    def test_prefix_match(self):
        assert name_similarity("Brad", "Bradley") == 0.9

    def test_typo_scores_below_prefix(self):
        assert 0.3 < name_similarity("Bardley", "Bradley") < 0.9

    def test_blank(self):
        assert name_similarity("", "Bradley") == 0.0


class TestAgentDirectory:
    async def test_resolves_best_match(self, seeded_db):
        match = await AgentDirectory(seeded_db).resolve_by_name("sara")

        assert match.agent_user_id == "agent-sarah"
        assert match.similarity_score == 0.9

    async def test_no_match_below_threshold(self, seeded_db):
        assert await AgentDirectory(seeded_db).resolve_by_name("Zzyx") is None

    async def test_get_agent_by_id(self, seeded_db):
        agent = await AgentDirectory(seeded_db).get_agent_by_id("agent-maria")

        assert agent.first_name == "Maria"
        assert agent.department == "Retention"


class TestCallStore:
    async def test_get_call_by_id(self, seeded_db):
        call = await CallStore(seeded_db).get_call_by_id("call-b1")

        assert call.agent_name == "Bradley"
        assert call.total_duration_formatted == "25:00"

    async def test_missing_call(self, seeded_db):
        assert await CallStore(seeded_db).get_call_by_id("missing") is None

    async def test_transcript(self, seeded_db):
        transcript = await CallStore(seeded_db).get_call_transcript("call-b1")

        assert transcript.agent_name == "Bradley"
        assert transcript.full_transcript.startswith("Agent: Hi")

    async def test_agent_calls_respect_limit(self, seeded_db):
        calls = await CallStore(seeded_db).get_agent_calls("agent-bradley", WEEK_AGO, TODAY, limit=1)

        assert [c.call_id for c in calls] == ["call-b1"]

    async def test_performance(self, seeded_db):
        perf = await CallStore(seeded_db).get_agent_performance("agent-bradley", WEEK_AGO, TODAY)

        assert perf.total_calls == 2
        assert perf.avg_duration_seconds == 900
        assert perf.avg_duration_formatted == "15:00"
        assert perf.avg_agent_talk_percentage == 55.0

    async def test_daily_calls_sorted_by_date(self, seeded_db):
        daily = await CallStore(seeded_db).get_agent_daily_calls("agent-bradley", WEEK_AGO, TODAY)

        assert [d.call_date for d in daily] == [TODAY - timedelta(days=3), TODAY - timedelta(days=1)]

    async def test_team_summary(self, seeded_db):
        summary = await CallStore(seeded_db).get_team_summary("Agent", WEEK_AGO, TODAY)

        assert summary.total_calls == 3
        assert summary.agents[0].agent_name == "Bradley"


class TestSearchStore:
    async def test_semantic_keeps_best_chunk_per_call(self, seeded_db):
        hits = await SearchStore(seeded_db).semantic_search([1.0, 0.0, 0.0], WEEK_AGO, TODAY)

        assert len(hits) == 1
        assert hits[0].similarity == 1.0
        assert hits[0].excerpt == "The price is my biggest worry."

    async def test_semantic_scoped_to_agent(self, seeded_db):
        hits = await SearchStore(seeded_db).semantic_search(
            [0.0, 1.0, 0.0], WEEK_AGO, TODAY, agent_user_id="agent-bradley"
        )

        # Bradley's second chunk scores 0.6
        assert [h.call_id for h in hits] == ["call-b1"]
        assert hits[0].similarity == 0.6

    async def test_text_search_is_case_insensitive(self, seeded_db):
        hits = await SearchStore(seeded_db).text_search("BUDGET", WEEK_AGO, TODAY)

        assert [h.call_id for h in hits] == ["call-b1"]
        assert hits[0].similarity is None


class TestHelpers:
    def test_format_duration(self):
        assert format_duration(65) == "1:05"
        assert format_duration(0) == "0:00"

    def test_cosine_similarity(self):
        assert cosine_similarity([1, 0], [1, 0]) == pytest.approx(1.0)
        assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
        assert cosine_similarity([0, 0], [1, 1]) == 0.0

    def test_cosine_similarity_length_mismatch(self):
        with pytest.raises(ValueError):
            cosine_similarity([1, 0], [1, 0, 0])
