# resolves a backend from environment configuration
# kept outside the generator so callers can always inject their own provider instead
# model / temperature / max_tokens arguments override the env defaults for one provider

import logging
from typing import Optional
from promptgen.core import config
from promptgen.core.errors import ConfigurationError, NoProviderError
from promptgen.providers.base import Provider, ProviderConfig

logger = logging.getLogger(__name__)


def provider_from_env(
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> Provider:
    name = (config.PROVIDER or "").strip().lower()
    if temperature is None:
        temperature = config.TEMPERATURE
    if max_tokens is None:
        max_tokens = config.MAX_TOKENS
    if name == "openai":
        if not config.OPENAI_API_KEY:
            raise ConfigurationError("OPENAI_API_KEY environment variable is required")
        from promptgen.providers.openai import OpenAIProvider
        model = model or config.OPENAI_MODEL
        logger.info("using openai provider, model=%s", model)
        return OpenAIProvider(ProviderConfig(
            model=model,
            api_key=config.OPENAI_API_KEY,
            base_url=config.OPENAI_BASE_URL,
            temperature=temperature,
            max_tokens=max_tokens,
        ))
    if name == "ollama":
        from promptgen.providers.ollama import OllamaProvider
        model = model or config.OLLAMA_MODEL
        logger.info("using ollama provider, model=%s", model)
        return OllamaProvider(ProviderConfig(
            model=model,
            base_url=config.OLLAMA_HOST,
            temperature=temperature,
            max_tokens=max_tokens,
        ))
    raise NoProviderError(f"Unknown provider: {config.PROVIDER!r}")
