from fastapi import APIRouter, Depends

from clinic_copilot.api.v1.controllers.chat_controller import ChatController
from clinic_copilot.middlewares.clerk_auth import get_signed_in_user
from clinic_copilot.schemas.chat_schemas import (
    ChatRequest,
    ChatResponse,
    ChatSummaryRequest,
    ChatSummaryResult,
    FinishChatRequest,
    FinishChatResponse,
)
from clinic_copilot.schemas.user_schemas import AuthUser
from clinic_copilot.utils.app_container import AppContainer, get_container

# Mounted at /api to keep the paths the web client already calls
router = APIRouter(tags=["Health Assistant"])


@router.post(
    "/chat",
    summary="Chat with the health assistant",
    response_model=ChatResponse
)
async def chat(
    payload: ChatRequest,
    container: AppContainer = Depends(get_container),
    user: AuthUser = Depends(get_signed_in_user)
):
    """
    Relay one conversational turn to the assistant.

    On the first turn the assistant also receives the health snapshot and
    earlier chat summaries.
    """
    return await ChatController.send_message(container, user, payload)


@router.post(
    "/chat-summary",
    summary="Summarize a conversation",
    response_model=ChatSummaryResult
)
async def chat_summary(
    payload: ChatSummaryRequest,
    container: AppContainer = Depends(get_container),
    user: AuthUser = Depends(get_signed_in_user)
):
    return await ChatController.summarize(container, user, payload)


@router.post(
    "/v1/chat/finish",
    summary="Summarize and save a chat session",
    response_model=FinishChatResponse
)
async def finish_chat(
    payload: FinishChatRequest,
    container: AppContainer = Depends(get_container),
    user: AuthUser = Depends(get_signed_in_user)
):
    return await ChatController.finish_session(container, user, payload)
