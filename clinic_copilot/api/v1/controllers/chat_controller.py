from clinic_copilot.core.logger import get_logger
from clinic_copilot.schemas.chat_schemas import (
    ChatRequest,
    ChatResponse,
    ChatSummaryRequest,
    ChatSummaryResult,
    FinishChatRequest,
    FinishChatResponse,
)
from clinic_copilot.schemas.user_schemas import AuthUser
from clinic_copilot.services.health_assistant_service import build_transcript
from clinic_copilot.utils.app_container import AppContainer

logger = get_logger("chat_controller")


class ChatController:
    """Controller for the health assistant. One request in flight per user."""

    @staticmethod
    async def send_message(container: AppContainer, user: AuthUser, payload: ChatRequest) -> ChatResponse:
        health_data = payload.health_data or container.health_data.health_data

        async with container.chat_guard.hold(user.id):
            logger.info(f"💬 User {user.id}: {payload.messages[-1].content[:50]}...")
            reply = await container.assistant.reply(
                payload.messages, health_data, payload.is_first_message
            )

        return ChatResponse(response=reply)

    @staticmethod
    async def summarize(container: AppContainer, user: AuthUser, payload: ChatSummaryRequest) -> ChatSummaryResult:
        health_data = payload.health_data or container.health_data.health_data

        async with container.chat_guard.hold(user.id):
            return await container.assistant.summarize(payload.conversation, health_data)

    @staticmethod
    async def finish_session(container: AppContainer, user: AuthUser, payload: FinishChatRequest) -> FinishChatResponse:
        """Summarize the transcript and store the summary in the health record."""
        # the first message is the assistant's greeting; nothing to summarize without an exchange
        if len(payload.messages) <= 2:
            return FinishChatResponse(saved=False)

        transcript = build_transcript(payload.messages)
        async with container.chat_guard.hold(user.id):
            result = await container.assistant.summarize(transcript, container.health_data.health_data)

        entry = await container.health_data.save_chat_summary(
            result.summary, result.key_findings, result.recommendations
        )
        logger.info(f"📝 Saved chat summary for user {user.id}")
        return FinishChatResponse(saved=entry is not None, summary=entry)
