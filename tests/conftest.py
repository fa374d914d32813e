# tests/conftest.py
import os
import logging
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Ensure test-friendly env: no real credentials, no global deadline
os.environ.setdefault("PROVIDER", "openai")
os.environ["OPENAI_API_KEY"] = ""
os.environ.setdefault("REQUEST_TIMEOUT", "0")

# IMPORTANT: import the app after envs are set
from promptgen.api.main import create_app
from promptgen.providers.mock import MockProvider

@pytest.fixture
def mock_provider():
    return MockProvider(response="hello", stream_tokens=["he", "llo"])

@pytest_asyncio.fixture
async def app(mock_provider):
    return create_app(provider=mock_provider)

@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

@pytest.fixture
def caplog_info(caplog):
    caplog.set_level(logging.INFO)
    return caplog

@pytest.fixture
def caplog_debug(caplog):
    caplog.set_level(logging.DEBUG)
    return caplog
