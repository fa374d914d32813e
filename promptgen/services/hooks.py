"""Request/response interceptors.

Hooks run in registration order around every backend call: before_request
can rewrite the outbound prompt, after_response can rewrite the reply (or,
on a stream, each token). A hook that raises aborts the call with HookError.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence, runtime_checkable

from promptgen.core.errors import HookError

logger = logging.getLogger(__name__)


@runtime_checkable
class Hook(Protocol):
    async def before_request(self, prompt: str) -> str:
        ...

    async def after_response(self, response: str, error: Optional[BaseException]) -> str:
        ...


async def run_before_hooks(hooks: Sequence[Hook], prompt: str) -> str:
    for hook in hooks:
        try:
            prompt = await hook.before_request(prompt)
        except Exception as e:
            raise HookError(f"{type(hook).__name__}.before_request failed: {e}") from e
    return prompt


async def run_after_hooks(
    hooks: Sequence[Hook],
    response: str,
    error: Optional[BaseException] = None,
) -> str:
    for hook in hooks:
        try:
            response = await hook.after_response(response, error)
        except Exception as e:
            raise HookError(f"{type(hook).__name__}.after_response failed: {e}") from e
    return response


class LoggingHook:
    """Logs every prompt and response passing through the pipeline."""

    def __init__(self, logger_: Optional[logging.Logger] = None, level: int = logging.INFO) -> None:
        self.logger = logger_ or logger
        self.level = level

    async def before_request(self, prompt: str) -> str:
        self.logger.log(self.level, "sending prompt to provider:\n%s", prompt)
        return prompt

    async def after_response(self, response: str, error: Optional[BaseException]) -> str:
        if error is not None:
            self.logger.log(self.level, "provider error: %s", error)
            raise error
        self.logger.log(self.level, "received response from provider:\n%s", response)
        return response
