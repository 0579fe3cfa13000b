from fastapi import Request

from salescoach.services.chat_service import ChatService
from salescoach.services.rubric_service import RubricService


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_rubric_service(request: Request) -> RubricService:
    return request.app.state.rubric_service
