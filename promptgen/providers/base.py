# the backend port: every text-generation backend implements complete(...) and stream(...)
# lets the generator swap backends (openai/ollama/mock...) without touching pipeline logic

from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Optional, Protocol, runtime_checkable
from promptgen.core.errors import ContextLengthError, GenerationTimeoutError, PromptGenError, RateLimitError


# provider faults the pipeline can tell apart from its own errors
class ProviderError(Exception):
    pass


# raised by adapters when the backend signals throttling (HTTP 429)
class ProviderRateLimitError(ProviderError):
    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


# raised by adapters when the prompt does not fit the model's context window
class ProviderContextLengthError(ProviderError):
    pass


@dataclass
class ProviderConfig:
    model: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 2000
    timeout: float = 120.0
    options: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class Provider(Protocol):
    async def complete(self, prompt: str) -> str:
        """Return the full completion for prompt."""
        ...

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        """
        Start a streaming completion.
        - initiation failures raise from this call
        - the returned iterator yields text chunks, then raises if the backend fails mid-stream
        """
        ...


def classify_backend_error(exc: BaseException) -> BaseException:
    """
    Map a backend failure onto the pipeline's error kinds.
    - rate limit / context length sentinels and timeouts get their typed error, with exc as __cause__
    - anything else is returned unchanged
    """
    if isinstance(exc, PromptGenError):
        return exc
    if isinstance(exc, ProviderRateLimitError):
        classified: PromptGenError = RateLimitError(str(exc), details={"retry_after": exc.retry_after})
    elif isinstance(exc, ProviderContextLengthError):
        classified = ContextLengthError(str(exc))
    elif isinstance(exc, TimeoutError):
        classified = GenerationTimeoutError(str(exc) or "backend call timed out")
    else:
        return exc
    classified.__cause__ = exc
    return classified
