"""Typed errors raised by the generation pipeline.

Every classified failure is a PromptGenError carrying a kind, a short
machine code, a human message and an optional details bag. Callers branch
with the is_* predicates, which follow __cause__ links so wrapped errors
still classify.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Optional


class ErrorKind(str, Enum):
    NO_PROVIDER = "no_provider"
    INVALID_RESPONSE = "invalid_response"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    TIMEOUT = "timeout"
    CANCELED = "canceled"
    RATE_LIMIT = "rate_limit"
    CONTEXT_LENGTH = "context_length"


class PromptGenError(Exception):
    """Base error for all classified pipeline failures."""

    kind: Optional[ErrorKind] = None
    code = "promptgen_error"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        if code:
            self.code = code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "kind": self.kind.value if self.kind else None,
            "message": self.message,
            "details": self.details,
        }


class NoProviderError(PromptGenError):
    kind = ErrorKind.NO_PROVIDER
    code = "no_provider"


class ConfigurationError(PromptGenError):
    kind = ErrorKind.CONFIGURATION
    code = "config_error"


class InvalidResponseError(PromptGenError):
    kind = ErrorKind.INVALID_RESPONSE
    code = "invalid_format"


class OutputValidationError(PromptGenError):
    kind = ErrorKind.VALIDATION
    code = "validation_failed"


class GenerationTimeoutError(PromptGenError):
    kind = ErrorKind.TIMEOUT
    code = "timeout"


class CanceledError(PromptGenError):
    kind = ErrorKind.CANCELED
    code = "canceled"


class RateLimitError(PromptGenError):
    kind = ErrorKind.RATE_LIMIT
    code = "rate_limit"


class ContextLengthError(PromptGenError):
    kind = ErrorKind.CONTEXT_LENGTH
    code = "context_length"


class HookError(PromptGenError):
    """A hook raised; the original exception is the __cause__."""

    code = "hook_error"


def error_kind(err: Optional[BaseException]) -> Optional[ErrorKind]:
    """Return the first kind found walking err and its __cause__ chain."""
    seen = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        kind = getattr(err, "kind", None)
        if isinstance(kind, ErrorKind):
            return kind
        err = err.__cause__
    return None


def _predicate(kind: ErrorKind) -> Callable[[Optional[BaseException]], bool]:
    def check(err: Optional[BaseException]) -> bool:
        return error_kind(err) is kind

    check.__name__ = f"is_{kind.value}"
    check.__doc__ = f"True if err (or anything it wraps) is a {kind.value} error."
    return check


is_no_provider = _predicate(ErrorKind.NO_PROVIDER)
is_configuration = _predicate(ErrorKind.CONFIGURATION)
is_invalid_response = _predicate(ErrorKind.INVALID_RESPONSE)
is_validation = _predicate(ErrorKind.VALIDATION)
is_timeout = _predicate(ErrorKind.TIMEOUT)
is_canceled = _predicate(ErrorKind.CANCELED)
is_rate_limit = _predicate(ErrorKind.RATE_LIMIT)
is_context_length = _predicate(ErrorKind.CONTEXT_LENGTH)
