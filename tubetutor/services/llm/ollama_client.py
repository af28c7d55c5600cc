from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from tubetutor.services.errors import ProviderError
from tubetutor.services.llm.base import GenerationParams, ProviderClient, ProviderId
from tubetutor.services.study_aids import ContentType

logger = logging.getLogger(__name__)


class OllamaClient(ProviderClient):
    """
    Minimal Ollama client for local generation.

    Uses /api/generate (simple) to keep integration stable.
    """

    provider_id = ProviderId.OLLAMA
    generation_params = {
        ContentType.SUMMARY: GenerationParams(temperature=0.2, max_tokens=2048),
        ContentType.NOTES: GenerationParams(temperature=0.2, max_tokens=4096),
        ContentType.QUIZ: GenerationParams(temperature=0.6, max_tokens=2048),
        ContentType.TUTOR: GenerationParams(temperature=0.3, max_tokens=1024),
    }

    def __init__(
        self,
        base_url: str,
        model: str = "qwen2.5:7b-instruct",
        timeout_s: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_s = timeout_s
        self._transport = transport

    def generate(self, prompt: str, content_type: ContentType) -> str:
        params = self.params_for(content_type)
        url = f"{self.base_url}/api/generate"

        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "num_predict": params.max_tokens,  # hard cap output tokens
                "temperature": params.temperature,
            },
        }

        timeout = httpx.Timeout(self.timeout_s, connect=10.0)
        try:
            with httpx.Client(timeout=timeout, transport=self._transport) as client:
                r = client.post(url, json=payload)
                r.raise_for_status()
                data = r.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Ollama request timed out after {self.timeout_s}s")
            raise ProviderError(self.provider_id.value, "timeout") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"Ollama API error: {e.response.status_code}")
            raise ProviderError(
                self.provider_id.value, e.response.text[:200] or "Unknown error", http_status=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(self.provider_id.value, f"network error: {e}") from e
        except ValueError as e:
            raise ProviderError(self.provider_id.value, "malformed response body") from e

        # Ollama returns {"response": "...", ...}
        text = (data.get("response") or "").strip() if isinstance(data, dict) else ""
        if not text:
            raise ProviderError(self.provider_id.value, "Empty response from Ollama")
        return text
