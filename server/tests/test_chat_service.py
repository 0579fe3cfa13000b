"""End-to-end tests for the chat pipeline: classify, resolve, dispatch, format."""

from conftest import ScriptedLLM
from salescoach.schemas.intent import ChatContext, Intent
from salescoach.services.agent_directory import AgentDirectory
from salescoach.services.chat_service import ChatService
from salescoach.services.handlers import HandlerDispatcher
from salescoach.services.intent_classifier import IntentClassifier
from salescoach.services.parameter_resolver import ParameterResolver


def make_service(ctx, llm) -> ChatService:
    return ChatService(
        classifier=IntentClassifier(llm),
        resolver=ParameterResolver(AgentDirectory(ctx.agents.session_factory)),
        dispatcher=HandlerDispatcher(ctx),
    )


class TestChatService:
    async def test_agent_stats_end_to_end(self, make_context):
        llm = ScriptedLLM(json_responses=[
            {"intent": "AGENT_STATS", "agent_name": "Bradley", "days_back": 30, "confidence": 0.95},
        ])
        service = make_service(make_context(llm=llm), llm)

        response = await service.process_message("How is Bradley doing this month?")

        assert response.success is True
        assert response.intent == Intent.AGENT_STATS
        assert response.data["agent_name"] == "Bradley"
        assert response.data["agent_user_id"] == "agent-bradley"
        assert "Performance stats for **Bradley**" in response.response
        assert response.error is None

    async def test_unknown_agent_name(self, make_context):
        llm = ScriptedLLM(json_responses=[{"intent": "AGENT_STATS", "agent_name": "Zzyx"}])
        service = make_service(make_context(llm=llm), llm)

        response = await service.process_message("How is Zzyx doing?")

        assert response.success is False
        assert "Zzyx" in response.error
        assert response.intent == Intent.AGENT_STATS

    async def test_partial_name_resolves(self, make_context):
        llm = ScriptedLLM(json_responses=[{"intent": "LIST_CALLS", "agent_name": "Brad"}])
        service = make_service(make_context(llm=llm), llm)

        response = await service.process_message("Brad's calls")

        assert response.success is True
        assert response.data["agent_name"] == "Bradley"
        assert response.data["call_count"] == 2

    async def test_classification_failure_becomes_general(self, make_context):
        llm = ScriptedLLM(json_responses=[RuntimeError("API down")])
        service = make_service(make_context(llm=llm), llm)

        response = await service.process_message("hello")

        assert response.success is True
        assert response.intent == Intent.GENERAL
        assert "sales coaching assistant" in response.response

    async def test_context_supplies_call_id(self, make_context):
        llm = ScriptedLLM(json_responses=[{"intent": "GET_TRANSCRIPT"}])
        service = make_service(make_context(llm=llm), llm)

        response = await service.process_message("show the transcript", ChatContext(call_id="call-s1"))

        assert response.success is True
        assert response.data["call_id"] == "call-s1"
        assert "**Agent:** Hello." in response.response

    async def test_timestamp_is_iso(self, make_context):
        llm = ScriptedLLM(json_responses=[{"intent": "TEAM_SUMMARY"}])
        service = make_service(make_context(llm=llm), llm)

        response = await service.process_message("team overview")

        assert "T" in response.timestamp
        assert response.timestamp.endswith("+00:00")

    async def test_unexpected_pipeline_error_returns_envelope(self, make_context):
        class ExplodingResolver:
            async def resolve(self, classification, context=None):
                raise RuntimeError("resolver bug")

        llm = ScriptedLLM(json_responses=[{"intent": "LIST_CALLS"}])
        ctx = make_context(llm=llm)
        service = ChatService(IntentClassifier(llm), ExplodingResolver(), HandlerDispatcher(ctx))

        response = await service.process_message("calls")

        assert response.success is False
        assert response.intent == Intent.LIST_CALLS
        assert response.error == "resolver bug"
