"""Typed prompt-to-value pipeline.

    class Input(BaseModel):
        message: str

    class Output(BaseModel):
        response: str = Field(max_length=100)

    generator = Generator.create("Respond to: {{message}}", Output, Input)
    result = await generator.run(Input(message="Hello"))

run() renders the template, wraps it with the output type's format
instructions, passes it through the hooks, calls the backend and decodes and
validates the reply. stream() shares the first half of that pipeline and
hands back a Stream of live tokens.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Generic, List, Optional, Tuple, Type, TypeVar

from promptgen.core.errors import ConfigurationError, GenerationTimeoutError, OutputValidationError, PromptGenError
from promptgen.handlers.base import OutputHandler, create_handler
from promptgen.handlers.structured import StructuredHandler
from promptgen.providers.base import Provider, ProviderConfig, ProviderError, classify_backend_error
from promptgen.providers.factory import provider_from_env
from promptgen.schemas.validator import SchemaViolation
from promptgen.services.hooks import Hook, run_after_hooks, run_before_hooks
from promptgen.services.prompt import PromptTemplate
from promptgen.services.stream import Stream

logger = logging.getLogger(__name__)

I = TypeVar("I")
O = TypeVar("O")


class Generator(Generic[I, O]):
    def __init__(self, template: PromptTemplate, handler: OutputHandler[O]) -> None:
        self._template = template
        self._handler = handler
        self._provider: Optional[Provider] = None
        self._hooks: List[Hook] = []
        self._timeout: Optional[float] = None
        self._model: Optional[str] = None
        self._temperature: Optional[float] = None
        self._max_tokens: Optional[int] = None

    @classmethod
    def create(
        cls,
        template: str,
        output_type: Type[O],
        input_type: Optional[Type[I]] = None,
    ) -> "Generator[I, O]":
        """Compile template (probing it against input_type) and pick the handler for output_type."""
        return cls(PromptTemplate(template, input_type), create_handler(output_type))

    # configuration: set up once, before the generator is shared

    def with_provider(self, provider: Provider) -> "Generator[I, O]":
        self._provider = provider
        return self

    def with_hook(self, hook: Hook) -> "Generator[I, O]":
        self._hooks.append(hook)
        return self

    def with_timeout(self, timeout: Optional[float]) -> "Generator[I, O]":
        """Bound every call to timeout seconds; None or 0 disables."""
        self._timeout = timeout or None
        return self

    # generation settings for the provider this generator resolves from the environment;
    # an injected provider keeps the settings of its own ProviderConfig

    def with_model(self, model: str) -> "Generator[I, O]":
        self._model = model
        return self

    def with_temperature(self, temperature: float) -> "Generator[I, O]":
        self._temperature = temperature
        return self

    def with_max_tokens(self, max_tokens: int) -> "Generator[I, O]":
        self._max_tokens = max_tokens
        return self

    @property
    def provider(self) -> Optional[Provider]:
        return self._provider

    @property
    def hooks(self) -> Tuple[Hook, ...]:
        return tuple(self._hooks)

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    @property
    def model(self) -> Optional[str]:
        return self._model

    @property
    def temperature(self) -> Optional[float]:
        return self._temperature

    @property
    def max_tokens(self) -> Optional[int]:
        return self._max_tokens

    @property
    def handler(self) -> OutputHandler[O]:
        return self._handler

    @property
    def template(self) -> PromptTemplate:
        return self._template

    def ensure_default_config(self) -> Provider:
        """
        Resolve a provider from the environment if none was injected.
        - model, temperature and max_tokens set on the generator override the env defaults
        - unset settings are filled from the provider's ProviderConfig, once
        """
        if self._provider is None:
            try:
                self._provider = provider_from_env(
                    model=self._model,
                    temperature=self._temperature,
                    max_tokens=self._max_tokens,
                )
            except PromptGenError:
                raise
            except ProviderError as e:
                raise ConfigurationError(str(e)) from e
        settings = getattr(self._provider, "config", None)
        if isinstance(settings, ProviderConfig):
            if self._model is None:
                self._model = settings.model
            if self._temperature is None:
                self._temperature = settings.temperature
            if self._max_tokens is None:
                self._max_tokens = settings.max_tokens
        return self._provider

    def _limit(self, timeout: Optional[float]) -> Optional[float]:
        limits = [t for t in (self._timeout, timeout) if t]
        return min(limits) if limits else None

    # schema helpers for structured outputs

    def _structured(self) -> StructuredHandler:
        if not isinstance(self._handler, StructuredHandler):
            raise ConfigurationError("output type has no JSON schema", code="unsupported_type")
        return self._handler

    def schema_string(self) -> str:
        return self._structured().schema_string()

    def validate_response(self, data: bytes) -> None:
        try:
            self._structured().validator.validate(data)
        except SchemaViolation as e:
            raise OutputValidationError(str(e), details={"violations": e.violations}) from e

    # pipeline

    async def _prepare(self, value: I) -> str:
        logger.debug("rendering prompt")
        prompt = self._template.render(value)
        prompt = self._handler.wrap_prompt(prompt)
        logger.debug("running %d before-request hooks", len(self._hooks))
        return await run_before_hooks(self._hooks, prompt)

    async def _call(self, provider: Provider, prompt: str) -> str:
        logger.debug("calling provider %s", type(provider).__name__)
        try:
            return await provider.complete(prompt)
        except Exception as exc:
            classified = classify_backend_error(exc)
            if classified is exc:
                raise
            raise classified from exc

    async def _run(self, provider: Provider, value: I) -> O:
        prompt = await self._prepare(value)
        # a failed completion returns here: no after-hooks, no parsing
        response = await self._call(provider, prompt)
        response = await run_after_hooks(self._hooks, response, None)
        logger.debug("parsing %d characters of response", len(response))
        output = self._handler.parse(response)
        self._handler.validate(output)
        return output

    async def run(self, value: I, *, timeout: Optional[float] = None) -> O:
        """Run the full pipeline once; raises a classified PromptGenError on failure."""
        provider = self.ensure_default_config()
        limit = self._limit(timeout)
        scope = asyncio.timeout(limit)
        try:
            async with scope:
                return await self._run(provider, value)
        except TimeoutError as exc:
            if scope.expired():
                raise GenerationTimeoutError(
                    f"generation did not finish within {limit}s",
                    details={"timeout": limit},
                ) from exc
            raise

    async def stream(
        self,
        value: I,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Stream:
        """Start a live token stream; the returned Stream is owned by the caller."""
        provider = self.ensure_default_config()
        limit = self._limit(timeout)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + limit if limit else None
        scope = asyncio.timeout_at(deadline)
        try:
            async with scope:
                prompt = await self._prepare(value)
                logger.debug("opening stream on provider %s", type(provider).__name__)
                try:
                    source: Any = await provider.stream(prompt)
                except Exception as exc:
                    classified = classify_backend_error(exc)
                    if classified is exc:
                        raise
                    raise classified from exc
        except TimeoutError as exc:
            if scope.expired():
                raise GenerationTimeoutError(
                    f"stream did not start within {limit}s",
                    details={"timeout": limit},
                ) from exc
            raise
        return Stream(source, self._hooks, cancel_event=cancel_event, deadline=deadline).start()
