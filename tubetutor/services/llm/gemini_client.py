from __future__ import annotations

import logging
from typing import Any

import httpx

from tubetutor.services.errors import ProviderError
from tubetutor.services.llm.base import GenerationParams, ProviderClient, ProviderId
from tubetutor.services.study_aids import ContentType

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiClient(ProviderClient):
    """Gemini generateContent over plain REST."""

    provider_id = ProviderId.GEMINI
    generation_params = {
        ContentType.SUMMARY: GenerationParams(temperature=0.5, max_tokens=4096),
        ContentType.NOTES: GenerationParams(temperature=0.5, max_tokens=8192),
        ContentType.QUIZ: GenerationParams(temperature=0.7, max_tokens=2048),
        ContentType.TUTOR: GenerationParams(temperature=0.5, max_tokens=1024),
    }

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        timeout_s: float = 30.0,
        base_url: str = GEMINI_BASE_URL,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout_s = timeout_s
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    def _payload(self, prompt: str, params: GenerationParams) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": params.temperature,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": params.max_tokens,
            },
        }

    def generate(self, prompt: str, content_type: ContentType) -> str:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = self._payload(prompt, self.params_for(content_type))
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

        try:
            with httpx.Client(timeout=self.timeout_s, transport=self._transport) as client:
                r = client.post(url, json=payload, headers=headers)
                r.raise_for_status()
                data = r.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Gemini request timed out after {self.timeout_s}s")
            raise ProviderError(self.provider_id.value, "timeout") from e
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.warning(f"Gemini API error: {e.response.status_code} - {message}")
            raise ProviderError(self.provider_id.value, message, http_status=e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.warning(f"Failed to connect to Gemini API: {e}")
            raise ProviderError(self.provider_id.value, f"network error: {e}") from e
        except ValueError as e:
            raise ProviderError(self.provider_id.value, "malformed response body") from e

        return _extract_text(data)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or "Unknown error"
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict) and err.get("message"):
        return str(err["message"])
    return "Unknown error"


def _extract_text(data: Any) -> str:
    candidates = data.get("candidates") if isinstance(data, dict) else None
    if not candidates:
        raise ProviderError(ProviderId.GEMINI.value, "No response from Gemini API (no candidates)")

    parts = ((candidates[0] or {}).get("content") or {}).get("parts") or []
    text = "".join(str(p.get("text") or "") for p in parts if isinstance(p, dict)).strip()
    if not text:
        reason = (candidates[0] or {}).get("finishReason") or "empty"
        raise ProviderError(ProviderId.GEMINI.value, f"Empty response from Gemini API (finishReason={reason})")
    return text
