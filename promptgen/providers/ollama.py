import json
import logging
import httpx
from typing import Any, AsyncIterator, Dict
from promptgen.providers.base import ProviderConfig, ProviderContextLengthError, ProviderError, ProviderRateLimitError

logger = logging.getLogger(__name__)


class OllamaProvider:
    """Ollama /api/generate backend."""

    def __init__(self, config: ProviderConfig) -> None:
        self.config = config
        self._host = (config.base_url or "http://127.0.0.1:11434").rstrip("/")

    def _payload(self, prompt: str, stream: bool) -> Dict[str, Any]:
        opts: Dict[str, Any] = dict(self.config.options)
        opts.setdefault("num_predict", self.config.max_tokens)
        opts.setdefault("temperature", self.config.temperature)
        return {
            "model": self.config.model,
            "prompt": prompt,
            "stream": stream,
            "options": opts,
        }

    @staticmethod
    def _raise_for_error(message: str) -> None:
        if "context" in message.lower() and "length" in message.lower():
            raise ProviderContextLengthError(f"Ollama error: {message}")
        raise ProviderError(f"Ollama error: {message}")

    @staticmethod
    def _raise_for_status(r: httpx.Response) -> None:
        if r.status_code == 429:
            raise ProviderRateLimitError("Ollama rate limit exceeded")
        r.raise_for_status()

    async def complete(self, prompt: str) -> str:
        timeout = httpx.Timeout(self.config.timeout, connect=10.0)
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                r = await client.post(f"{self._host}/api/generate", json=self._payload(prompt, False))
                self._raise_for_status(r)
                data = r.json()
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Ollama request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Ollama HTTP error: {e}") from e
        err = data.get("error")
        if isinstance(err, str) and err:
            self._raise_for_error(err)
        reply = data.get("response", "")
        if not isinstance(reply, str):
            raise ProviderError("Unexpected response type from Ollama.")
        return reply

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        return self._stream_lines(self._payload(prompt, True))

    async def _stream_lines(self, payload: Dict[str, Any]) -> AsyncIterator[str]:
        timeout = httpx.Timeout(self.config.timeout, connect=10.0)
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                async with client.stream("POST", f"{self._host}/api/generate", json=payload) as r:
                    self._raise_for_status(r)
                    async for line in r.aiter_lines():
                        if not line:
                            continue
                        try:
                            data = json.loads(line)
                        except json.JSONDecodeError:
                            logger.debug("skipping malformed stream line: %r", line)
                            continue
                        # normal chunks carry 'response'; a final line has 'done': true
                        chunk = data.get("response")
                        if isinstance(chunk, str) and chunk:
                            yield chunk
                        if data.get("error"):
                            self._raise_for_error(str(data["error"]))
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Ollama stream timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Ollama HTTP error: {e}") from e
