from __future__ import annotations


class AIContentError(Exception):
    """
    Base for failures the AI content pipeline surfaces to its caller.

    `stage` / `content_type` are filled in by the orchestrator so callers can
    tell which step of which generation failed.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.stage: str | None = None
        self.content_type: str | None = None


class ConfigurationError(AIContentError):
    """Unknown provider id or missing credential. Not retryable without operator action."""


class ProviderError(AIContentError):
    def __init__(self, provider_id: str, message: str, http_status: int | None = None) -> None:
        super().__init__(message)
        self.provider_id = provider_id
        self.http_status = http_status

    def __str__(self) -> str:
        status = f" ({self.http_status})" if self.http_status is not None else ""
        return f"{self.provider_id} provider error{status}: {self.message}"


class ParseFailure(AIContentError):
    """Provider text held no usable structure (e.g. zero valid quiz questions)."""


class QuizValidationError(ValueError):
    pass
