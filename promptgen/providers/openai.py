import json
import logging
import httpx
from typing import Any, AsyncIterator, Dict
from promptgen.providers.base import ProviderConfig, ProviderContextLengthError, ProviderError, ProviderRateLimitError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class OpenAIProvider:
    """OpenAI-compatible /chat/completions backend (plain JSON and SSE streaming)."""

    def __init__(self, config: ProviderConfig) -> None:
        if not config.api_key:
            raise ProviderError("API key is required")
        self.config = config
        self._base_url = (config.base_url or DEFAULT_BASE_URL).rstrip("/")

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.config.api_key}"}

    def _payload(self, prompt: str, stream: bool) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "stream": stream,
        }
        payload.update(self.config.options)
        return payload

    @staticmethod
    def _classify(status: int, body: str) -> ProviderError:
        # 429 and context-window overflows get their own sentinels, everything else is generic
        message = body
        try:
            message = json.loads(body).get("error", {}).get("message", body)
        except (json.JSONDecodeError, AttributeError):
            pass
        if status == 429:
            return ProviderRateLimitError(f"OpenAI rate limit exceeded: {message}")
        if status == 400 and ("maximum context length" in message or "context_length_exceeded" in body):
            return ProviderContextLengthError(f"OpenAI context length exceeded: {message}")
        return ProviderError(f"OpenAI HTTP {status}: {message}")

    async def complete(self, prompt: str) -> str:
        timeout = httpx.Timeout(self.config.timeout, connect=10.0)
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                r = await client.post(
                    f"{self._base_url}/chat/completions",
                    json=self._payload(prompt, False),
                    headers=self._headers(),
                )
                if r.status_code >= 400:
                    raise self._classify(r.status_code, r.text)
                data = r.json()
        except httpx.TimeoutException as e:
            raise TimeoutError(f"OpenAI request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"OpenAI HTTP error: {e}") from e

        choices = data.get("choices") or []
        if not choices:
            raise ProviderError("OpenAI returned no choices.")
        content = (choices[0].get("message") or {}).get("content")
        if not isinstance(content, str):
            raise ProviderError("Unexpected response type from OpenAI.")
        return content

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        return self._stream_events(self._payload(prompt, True))

    async def _stream_events(self, payload: Dict[str, Any]) -> AsyncIterator[str]:
        timeout = httpx.Timeout(self.config.timeout, connect=10.0)
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                async with client.stream(
                    "POST",
                    f"{self._base_url}/chat/completions",
                    json=payload,
                    headers=self._headers(),
                ) as r:
                    if r.status_code >= 400:
                        body = (await r.aread()).decode("utf-8", errors="replace")
                        raise self._classify(r.status_code, body)
                    async for line in r.aiter_lines():
                        # server-sent events: "data: {...}", terminated by "data: [DONE]"
                        if not line.startswith("data:"):
                            continue
                        data = line[len("data:"):].strip()
                        if data == "[DONE]":
                            return
                        try:
                            event = json.loads(data)
                        except json.JSONDecodeError:
                            logger.debug("skipping malformed stream event: %r", data)
                            continue
                        if event.get("error"):
                            raise ProviderError(f"OpenAI stream error: {event['error']}")
                        choices = event.get("choices") or []
                        if not choices:
                            continue
                        chunk = (choices[0].get("delta") or {}).get("content")
                        if isinstance(chunk, str) and chunk:
                            yield chunk
        except httpx.TimeoutException as e:
            raise TimeoutError(f"OpenAI stream timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"OpenAI stream receive failed: {e}") from e
