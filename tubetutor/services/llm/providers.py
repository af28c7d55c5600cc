from __future__ import annotations

from typing import Any, Callable

import httpx

from tubetutor.core.config import AIConfig
from tubetutor.services.errors import ConfigurationError
from tubetutor.services.llm.base import ProviderClient, ProviderId
from tubetutor.services.llm.gemini_client import GeminiClient
from tubetutor.services.llm.ollama_client import OllamaClient
from tubetutor.services.llm.openai_client import OpenAIClient

ProviderFactory = Callable[..., ProviderClient]


def parse_provider_id(value: Any, default: str | None = None) -> ProviderId:
    if isinstance(value, ProviderId):
        return value
    raw = str(value or default or "").strip().lower()
    try:
        return ProviderId(raw)
    except ValueError:
        raise ConfigurationError(f"Unsupported AI provider: {value!r}") from None


def _require(secret: str | None, message: str) -> str:
    if not secret:
        raise ConfigurationError(message)
    return secret


def _gemini(config: AIConfig, transport: httpx.BaseTransport | None) -> ProviderClient:
    return GeminiClient(
        api_key=_require(config.gemini_api_key, "Gemini API key not configured (GEMINI_API_KEY)"),
        model=config.gemini_model,
        timeout_s=config.request_timeout_sec,
        transport=transport,
    )


def _openai(config: AIConfig, transport: httpx.BaseTransport | None) -> ProviderClient:
    return OpenAIClient(
        api_key=_require(config.openai_api_key, "OpenAI API key not configured (OPENAI_API_KEY)"),
        model=config.openai_model,
        timeout_s=config.request_timeout_sec,
    )


def _ollama(config: AIConfig, transport: httpx.BaseTransport | None) -> ProviderClient:
    return OllamaClient(
        base_url=_require(config.ollama_base_url, "Ollama base URL not configured (OLLAMA_BASE_URL)"),
        model=config.ollama_model,
        timeout_s=config.request_timeout_sec,
        transport=transport,
    )


# Adding a provider = one ProviderId member + one entry here.
PROVIDER_BUILDERS: dict[ProviderId, Callable[[AIConfig, httpx.BaseTransport | None], ProviderClient]] = {
    ProviderId.GEMINI: _gemini,
    ProviderId.OPENAI: _openai,
    ProviderId.OLLAMA: _ollama,
}


def build_provider(
    provider_id: Any,
    config: AIConfig,
    transport: httpx.BaseTransport | None = None,
) -> ProviderClient:
    """
    Resolve a provider id to a ready client. Unknown ids and missing
    credentials raise ConfigurationError before any network call.
    """
    pid = parse_provider_id(provider_id, default=config.default_provider)
    builder = PROVIDER_BUILDERS.get(pid)
    if builder is None:
        raise ConfigurationError(f"No client registered for provider: {pid.value}")
    return builder(config, transport)


def available_providers(config: AIConfig) -> list[str]:
    out: list[str] = []
    if config.gemini_api_key:
        out.append(ProviderId.GEMINI.value)
    if config.openai_api_key:
        out.append(ProviderId.OPENAI.value)
    if config.ollama_base_url:
        out.append(ProviderId.OLLAMA.value)
    return out
