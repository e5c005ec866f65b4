import json
from typing import List, Optional

import openai
from pydantic import ValidationError

from clinic_copilot.core.config import settings
from clinic_copilot.core.logger import get_logger
from clinic_copilot.exceptions.errors import (
    LLMConfigurationError,
    UpstreamQuotaError,
    UpstreamServiceError,
)
from clinic_copilot.schemas.chat_schemas import ChatMessage, ChatSummaryResult
from clinic_copilot.schemas.health_record import HealthSnapshot

logger = get_logger("health_assistant_service")

EMPTY_REPLY = "I apologize, but I encountered an issue generating a response. Please try again."

FALLBACK_SUMMARY = ChatSummaryResult(
    summary="Chat session completed with health discussion",
    key_findings=["Health metrics reviewed", "Patient concerns addressed"],
    recommendations=["Continue monitoring health metrics", "Follow up as needed"],
)


class HealthAssistantService:
    """Relays conversations to the upstream LLM (OpenRouter, OpenAI-compatible API)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[openai.AsyncOpenAI] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENROUTER_API_KEY
        self.base_url = base_url or settings.OPENROUTER_BASE_URL
        self.model = model or settings.LLM_MODEL
        self._client = client

    @property
    def client(self) -> openai.AsyncOpenAI:
        if not self.api_key:
            raise LLMConfigurationError()
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=settings.LLM_TIMEOUT,
                max_retries=0,
                default_headers={"X-Title": settings.LLM_APP_TITLE},
            )
        return self._client

    # ------------------------------------------------------------------
    # Conversational turn
    # ------------------------------------------------------------------

    async def reply(
        self,
        messages: List[ChatMessage],
        health_data: HealthSnapshot,
        is_first_message: bool = False,
    ) -> str:
        client = self.client
        system_prompt = self._build_chat_system_prompt(health_data, is_first_message)

        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    *({"role": m.role.value, "content": m.content} for m in messages),
                ],
                temperature=0.8,
                max_tokens=180,
            )
        except openai.APIStatusError as e:
            logger.error(f"Upstream chat error {e.status_code}: {e.body}")
            if self._is_quota_error(e):
                raise UpstreamQuotaError() from e
            raise UpstreamServiceError() from e
        except openai.APIError as e:
            logger.error(f"Upstream chat request failed: {e}")
            raise UpstreamServiceError() from e

        content = self._first_content(response)
        return content or EMPTY_REPLY

    # ------------------------------------------------------------------
    # Session summary
    # ------------------------------------------------------------------

    async def summarize(self, conversation: str, health_data: HealthSnapshot) -> ChatSummaryResult:
        """Summarize a transcript. An unparseable reply degrades to FALLBACK_SUMMARY."""
        client = self.client

        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self._build_summary_system_prompt(health_data)},
                    {
                        "role": "user",
                        "content": f"Please analyze this health conversation and create a summary:\n\n{conversation}",
                    },
                ],
                temperature=0.3,
                max_tokens=500,
            )
        except openai.APIError as e:
            logger.error(f"Upstream summary request failed: {e}")
            raise UpstreamServiceError("Failed to generate chat summary") from e

        content = self._first_content(response)
        if not content:
            raise UpstreamServiceError("No response from AI")

        return self.parse_summary(content)

    @staticmethod
    def parse_summary(content: str) -> ChatSummaryResult:
        try:
            return ChatSummaryResult.model_validate(json.loads(content))
        except (ValueError, ValidationError):
            logger.warning("Summary reply was not valid JSON; using fallback summary")
            return FALLBACK_SUMMARY.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _first_content(response) -> Optional[str]:
        if not response.choices:
            return None
        return response.choices[0].message.content

    @staticmethod
    def _is_quota_error(error: openai.APIStatusError) -> bool:
        if error.status_code == 402:
            return True
        body = error.body if isinstance(error.body, dict) else {}
        # OpenRouter nests the upstream code under "error"; the client may already have unwrapped it
        inner = body.get("error") if isinstance(body.get("error"), dict) else body
        return inner.get("code") == 402

    @staticmethod
    def _latest_sleep(health_data: HealthSnapshot) -> str:
        if health_data.sleep_entries:
            return f"{health_data.sleep_entries[0].hours_slept:g}"
        return "Not logged"

    def _build_chat_system_prompt(self, health_data: HealthSnapshot, is_first_message: bool) -> str:
        prompt = """You are Clinic Copilot, a friendly and conversational AI health assistant. You have a warm, approachable personality while maintaining professionalism.

Your conversation style:
- Ask ONE focused question at a time to avoid overwhelming the user
- Show genuine interest in their wellbeing
- Use natural, conversational language (avoid being overly clinical)
- Be curious and encouraging
- Be decisive - provide helpful guidance when you have sufficient information rather than always asking more questions
- Conclude conversations naturally when you've addressed the user's concern adequately
- Only ask follow-up questions when truly necessary for understanding or safety
- Format your responses with proper line breaks for readability

Response formatting guidelines:
- Use line breaks to separate different thoughts or topics
- Keep paragraphs short and digestible
- Use bullet points sparingly and only when listing specific items
- Provide actionable advice and recommendations when appropriate, rather than always ending with a question
- End with a question only when you genuinely need more information to help effectively
"""

        if is_first_message:
            medications = ", ".join(
                f"{med.name} ({med.dosage}, {med.frequency})" for med in health_data.medications
            )
            prompt += f"""
You have access to the user's current health metrics:
- Current Heart Rate: {health_data.heart_rate} BPM
- Resting Heart Rate: {health_data.resting_heart_rate} BPM
- Heart Rate Variability: {health_data.heart_rate_variability:g} ms
- Recent Sleep Hours: {self._latest_sleep(health_data)} hours
- Mood Score: {health_data.mood_score}/4
- Current Medications: {medications or "None recorded"}

"""
            if health_data.chat_history:
                summaries = "\n\n".join(
                    f"{index}. {chat.date.isoformat()} - {chat.summary}\n"
                    f"   Key findings: {', '.join(chat.key_findings)}\n"
                    f"   Recommendations given: {', '.join(chat.recommendations)}"
                    for index, chat in enumerate(health_data.chat_history, start=1)
                )
                prompt += f"Previous conversation summaries (for context and continuity):\n{summaries}\n"
            else:
                prompt += "This is the user's first conversation with you.\n"

        prompt += (
            "\nAlways remember: You provide general health information and wellness guidance, "
            "but cannot replace professional medical advice. When in doubt, encourage consulting "
            "with healthcare providers."
        )
        return prompt

    def _build_summary_system_prompt(self, health_data: HealthSnapshot) -> str:
        medications = ", ".join(f"{med.name} ({med.dosage})" for med in health_data.medications)
        return f"""You are a medical assistant tasked with creating concise chat summaries for patient records.

Based on the conversation provided, generate:
1. A brief summary (2-3 sentences) of the main health topics discussed
2. Key findings (3-5 important health insights or concerns mentioned)
3. Recommendations (3-5 actionable health suggestions given)

Patient's current health data:
- Heart Rate: {health_data.heart_rate} BPM
- Recent Sleep Hours: {self._latest_sleep(health_data)} hours
- Mood Score: {health_data.mood_score}/4
- Current Medications: {medications or "None recorded"}

Respond in JSON format:
{{
  "summary": "Brief summary text",
  "keyFindings": ["finding1", "finding2", "finding3"],
  "recommendations": ["recommendation1", "recommendation2", "recommendation3"]
}}"""


def build_transcript(messages) -> str:
    """Flatten a chat transcript into 'Patient:'/'AI:' lines, skipping the opening greeting."""
    return "\n".join(
        f"{'Patient' if message.is_user else 'AI'}: {message.content}"
        for message in messages[1:]
    )
