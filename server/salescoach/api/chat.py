from fastapi import APIRouter, Depends

from salescoach.api.deps import get_chat_service
from salescoach.schemas.intent import ChatRequest, ChatResponse
from salescoach.services.chat_service import ChatService

router = APIRouter()


@router.post("/chat", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
):
    return await chat_service.process_message(payload.message, payload.context)
