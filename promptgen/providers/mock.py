"""In-memory backend for tests and examples."""

import asyncio
import threading
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional


@dataclass
class MockProvider:
    response: str = ""                          # fixed reply for complete()
    stream_tokens: List[str] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)  # queued failures, one per call
    stream_error: Optional[Exception] = None    # raised after stream_tokens are yielded
    delay: float = 0.0                          # seconds, simulates network latency
    prompts: List[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def _record(self, prompt: str) -> Optional[Exception]:
        with self._lock:
            self.prompts.append(prompt)
            if self.errors:
                return self.errors.pop(0)
        return None

    async def complete(self, prompt: str) -> str:
        err = self._record(prompt)
        if err is not None:
            raise err
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        return self.response

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        err = self._record(prompt)
        if err is not None:
            raise err
        return self._tokens()

    async def _tokens(self) -> AsyncIterator[str]:
        for token in self.stream_tokens:
            if self.delay > 0:
                await asyncio.sleep(self.delay)
            yield token
        if self.stream_error is not None:
            raise self.stream_error
