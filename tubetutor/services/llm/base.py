from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from tubetutor.services.study_aids import ContentType


class ProviderId(str, Enum):
    GEMINI = "gemini"  # primary
    OPENAI = "openai"  # secondary
    OLLAMA = "ollama"  # local


@dataclass(frozen=True)
class GenerationParams:
    temperature: float
    max_tokens: int


class ProviderClient(ABC):
    """
    One LLM backend. Request/response shapes stay inside the implementation;
    callers only see generate(prompt, content_type) -> raw text.

    Generation params are internal per-content-type defaults (low temperature
    keeps summary/notes format compliance high).
    """

    provider_id: ProviderId
    generation_params: dict[ContentType, GenerationParams] = {}

    def params_for(self, content_type: ContentType) -> GenerationParams:
        return self.generation_params.get(content_type) or self.generation_params[ContentType.TUTOR]

    @abstractmethod
    def generate(self, prompt: str, content_type: ContentType) -> str:
        """Send prompt, return raw model text. Raises ProviderError."""
        raise NotImplementedError
