# promptgen/api/main.py
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from promptgen.agents.chat import ChatInput, build_chat_generator
from promptgen.api.routers.health import router as health_router
from promptgen.api.routers.chat import router as chat_router
from promptgen.core import config
from promptgen.providers.base import Provider
from promptgen.services.generator import Generator


def create_app(generator: Optional[Generator[ChatInput, str]] = None, provider: Optional[Provider] = None) -> FastAPI:
    app = FastAPI(title="promptgen", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # one generator per process; the provider resolves from the environment on first call unless injected
    chat_generator = generator or build_chat_generator()
    if provider is not None:
        chat_generator.with_provider(provider)
    if config.REQUEST_TIMEOUT > 0:
        chat_generator.with_timeout(config.REQUEST_TIMEOUT)
    app.state.chat_generator = chat_generator

    # Routers
    app.include_router(health_router)
    app.include_router(chat_router)

    return app


app = create_app()
