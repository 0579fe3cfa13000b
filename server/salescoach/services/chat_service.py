import logging
from datetime import datetime, timezone
from typing import Optional

from salescoach.schemas.intent import ChatContext, ChatResponse, Intent
from salescoach.services.handlers import HandlerDispatcher
from salescoach.services.intent_classifier import IntentClassifier
from salescoach.services.parameter_resolver import ParameterResolver
from salescoach.services.response_formatter import ResponseFormatter

logger = logging.getLogger(__name__)

FAILURE_RESPONSE = "Sorry, something went wrong while processing your request."


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChatService:
    """Classify a message, resolve its parameters, run the handler and format the reply."""

    def __init__(
        self,
        classifier: IntentClassifier,
        resolver: ParameterResolver,
        dispatcher: HandlerDispatcher,
        formatter: Optional[ResponseFormatter] = None,
    ):
        self.classifier = classifier
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.formatter = formatter or ResponseFormatter()

    async def process_message(self, message: str, context: Optional[ChatContext] = None) -> ChatResponse:
        intent = Intent.GENERAL
        try:
            classification = await self.classifier.classify(message)
            intent = classification.intent
            params = await self.resolver.resolve(classification, context)
            result = await self.dispatcher.dispatch(intent, params, message)
        except Exception as e:
            logger.exception(f"Chat pipeline failed for intent {intent.value}")
            return ChatResponse(
                success=False,
                response=FAILURE_RESPONSE,
                intent=intent,
                timestamp=_timestamp(),
                error=str(e),
            )

        if not result.success:
            return ChatResponse(
                success=False,
                response=result.error or FAILURE_RESPONSE,
                data=result.data,
                intent=intent,
                timestamp=_timestamp(),
                error=result.error,
            )

        return ChatResponse(
            success=True,
            response=self.formatter.format(intent, result.data),
            data=result.data,
            intent=intent,
            timestamp=_timestamp(),
        )
