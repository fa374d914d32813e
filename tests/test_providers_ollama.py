# tests/test_providers_ollama.py
import json

import httpx
import pytest
import respx

from promptgen.providers.base import ProviderConfig, ProviderContextLengthError, ProviderError, ProviderRateLimitError
from promptgen.providers.ollama import OllamaProvider

BASE = "http://127.0.0.1:11434"
MODEL = "qwen2.5:3b-instruct"


def provider(**options) -> OllamaProvider:
    return OllamaProvider(ProviderConfig(model=MODEL, base_url=BASE, max_tokens=64, options=options))


@pytest.mark.asyncio
@respx.mock
async def test_complete_ok():
    # Tests a normal non-streaming Ollama request:
    # - Mocks a 200 response with "response":"hello"
    # - Verifies the reply and the generation caps sent as options.
    route = respx.post(f"{BASE}/api/generate").mock(
        return_value=httpx.Response(200, json={"response": "hello"})
    )
    out = await provider(top_p=0.9).complete("hi")
    assert out == "hello"
    assert route.called
    sent = json.loads(route.calls.last.request.content)
    assert sent["model"] == MODEL and sent["prompt"] == "hi" and sent["stream"] is False
    assert sent["options"] == {"top_p": 0.9, "num_predict": 64, "temperature": 0.7}


@pytest.mark.asyncio
@respx.mock
async def test_complete_error_field():
    # A 200 response carrying an "error" field instead of "response" raises ProviderError.
    respx.post(f"{BASE}/api/generate").mock(
        return_value=httpx.Response(200, json={"error": "model not loaded"})
    )
    with pytest.raises(ProviderError, match="model not loaded"):
        await provider().complete("hi")


@pytest.mark.asyncio
@respx.mock
async def test_complete_context_and_rate_limit():
    respx.post(f"{BASE}/api/generate").mock(
        return_value=httpx.Response(200, json={"error": "input exceeds context length"})
    )
    with pytest.raises(ProviderContextLengthError):
        await provider().complete("hi")

    respx.post(f"{BASE}/api/generate").mock(return_value=httpx.Response(429))
    with pytest.raises(ProviderRateLimitError):
        await provider().complete("hi")


@pytest.mark.asyncio
@respx.mock
async def test_complete_http_error():
    respx.post(f"{BASE}/api/generate").mock(return_value=httpx.Response(500, text="oops"))
    with pytest.raises(ProviderError, match="Ollama HTTP error"):
        await provider().complete("hi")


@pytest.mark.asyncio
@respx.mock
async def test_complete_timeout():
    respx.post(f"{BASE}/api/generate").mock(side_effect=httpx.ReadTimeout("slow"))
    with pytest.raises(TimeoutError):
        await provider().complete("hi")


@pytest.mark.asyncio
@respx.mock
async def test_stream_ok():
    # Simulate chunked lines as Ollama stream does
    chunks = [
        b'{"response":"he"}\n',
        b'{"response":"llo"}\n',
        b'{"response":"","done":true}\n',
    ]
    respx.post(f"{BASE}/api/generate").mock(
        return_value=httpx.Response(200, content=b"".join(chunks), headers={"Content-Type": "application/x-ndjson"})
    )
    gen = await provider().stream("hi")
    acc = [c async for c in gen]
    assert "".join(acc) == "hello"


@pytest.mark.asyncio
@respx.mock
async def test_stream_error_mid():
    # The second line carries an "error" field: the first chunk arrives, then ProviderError.
    chunks = [
        b'{"response":"he"}\n',
        b'{"error":"boom"}\n',
    ]
    respx.post(f"{BASE}/api/generate").mock(
        return_value=httpx.Response(200, content=b"".join(chunks), headers={"Content-Type": "application/x-ndjson"})
    )
    gen = await provider().stream("hi")
    acc = []
    with pytest.raises(ProviderError, match="boom"):
        async for c in gen:
            acc.append(c)
    assert acc == ["he"]
