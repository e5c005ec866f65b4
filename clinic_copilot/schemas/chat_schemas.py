from pydantic import BaseModel, Field
from typing import Optional, List

from clinic_copilot.enums import ChatRole
from clinic_copilot.schemas.health_record import CamelModel, ChatSummary, HealthSnapshot


class ChatMessage(BaseModel):
    role: ChatRole
    content: str = Field(..., min_length=1)


class ChatRequest(CamelModel):
    """A conversational turn. healthData falls back to the signed-in user's snapshot."""

    messages: List[ChatMessage] = Field(..., min_length=1)
    health_data: Optional[HealthSnapshot] = None
    is_first_message: bool = False


class ChatResponse(CamelModel):
    response: str


class ChatSummaryRequest(CamelModel):
    conversation: str = Field(..., min_length=1)
    health_data: Optional[HealthSnapshot] = None


class ChatSummaryResult(CamelModel):
    summary: str
    key_findings: List[str]
    recommendations: List[str]


class TranscriptMessage(CamelModel):
    content: str
    is_user: bool


class FinishChatRequest(CamelModel):
    messages: List[TranscriptMessage]


class FinishChatResponse(CamelModel):
    saved: bool
    summary: Optional[ChatSummary] = None
