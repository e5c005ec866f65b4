from fastapi import status
from fastapi.responses import JSONResponse


class ApplicationException(Exception):
    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def to_response(self):
        return JSONResponse(
            status_code=self.status_code,
            content={"error": self.message}
        )


class LLMConfigurationError(ApplicationException):
    """Upstream credentials are missing. Not retryable until the deployment is fixed."""

    MESSAGE = (
        "OpenRouter API key not configured. "
        "Please add OPENROUTER_API_KEY to your environment variables."
    )

    def __init__(self):
        super().__init__(self.MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)


class UpstreamServiceError(ApplicationException):
    def __init__(self, message: str = "Failed to get AI response. Please try again."):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class UpstreamQuotaError(UpstreamServiceError):
    MESSAGE = (
        "Insufficient API credits. Please check your OpenRouter account balance "
        "or reduce the conversation length."
    )

    def __init__(self):
        super().__init__(self.MESSAGE)
        self.status_code = status.HTTP_402_PAYMENT_REQUIRED


class DuplicateSubmissionError(ApplicationException):
    def __init__(self, message: str = "A request to the assistant is already in progress."):
        super().__init__(message, status.HTTP_409_CONFLICT)


class HealthDataValidationError(ApplicationException):
    def __init__(self, message: str):
        super().__init__(message, 422)


class StorageError(Exception):
    """Raised by the key/value storage layer. Never reaches HTTP callers."""


class StorageQuotaExceededError(StorageError):
    pass
