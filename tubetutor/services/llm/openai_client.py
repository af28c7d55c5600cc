from __future__ import annotations

import logging
from typing import Any

import openai

from tubetutor.services.errors import ProviderError
from tubetutor.services.llm.base import GenerationParams, ProviderClient, ProviderId
from tubetutor.services.study_aids import ContentType

logger = logging.getLogger(__name__)


def _build_openai_client(api_key: str, timeout_sec: float) -> Any:
    # No SDK-level retries: retry policy belongs to the caller.
    return openai.OpenAI(api_key=api_key, timeout=timeout_sec, max_retries=0)


class OpenAIClient(ProviderClient):
    provider_id = ProviderId.OPENAI
    generation_params = {
        ContentType.SUMMARY: GenerationParams(temperature=0.5, max_tokens=2048),
        ContentType.NOTES: GenerationParams(temperature=0.5, max_tokens=4096),
        ContentType.QUIZ: GenerationParams(temperature=0.7, max_tokens=2048),
        ContentType.TUTOR: GenerationParams(temperature=0.5, max_tokens=1024),
    }

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", timeout_s: float = 30.0, client: Any = None) -> None:
        self.model = model
        self.timeout_s = timeout_s
        self._client = client or _build_openai_client(api_key, timeout_s)

    def generate(self, prompt: str, content_type: ContentType) -> str:
        params = self.params_for(content_type)
        try:
            chat = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=params.temperature,
                max_tokens=params.max_tokens,
            )
        except openai.APITimeoutError as e:
            logger.warning(f"OpenAI request timed out after {self.timeout_s}s")
            raise ProviderError(self.provider_id.value, "timeout") from e
        except openai.APIStatusError as e:
            logger.warning(f"OpenAI API error: {e.status_code} - {e.message}")
            raise ProviderError(self.provider_id.value, str(e.message), http_status=e.status_code) from e
        except openai.APIConnectionError as e:
            logger.warning(f"Failed to connect to OpenAI API: {e}")
            raise ProviderError(self.provider_id.value, f"network error: {e}") from e

        choices = getattr(chat, "choices", None)
        if not choices:
            raise ProviderError(self.provider_id.value, "No response from OpenAI API (no choices)")

        text = (choices[0].message.content or "").strip()
        if not text:
            raise ProviderError(self.provider_id.value, "Empty response from OpenAI API")
        return text
