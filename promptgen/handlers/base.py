"""Output strategies: how a prompt is augmented and how the reply is decoded for a given output type."""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel

from promptgen.core.errors import ConfigurationError

O = TypeVar("O")


class OutputHandler(Protocol[O]):
    def wrap_prompt(self, prompt: str) -> str:
        """Append type-specific formatting instructions."""
        ...

    def parse(self, response: str) -> O:
        """Decode the raw reply; raises InvalidResponseError."""
        ...

    def validate(self, output: O) -> None:
        """Check the decoded value; raises OutputValidationError."""
        ...


class HandlerType(str, Enum):
    UNKNOWN = "unknown"
    STRING = "string"
    JSON = "json"
    PRIMITIVE = "primitive"


def determine_type(output_type: Any) -> HandlerType:
    if output_type is str:
        return HandlerType.STRING
    if output_type in (int, float, bool):
        return HandlerType.PRIMITIVE
    if isinstance(output_type, type) and issubclass(output_type, BaseModel):
        return HandlerType.JSON
    return HandlerType.UNKNOWN


def create_handler(output_type: Any) -> OutputHandler[Any]:
    """Pick the strategy for output_type once, at generator construction."""
    from promptgen.handlers.primitive import BoolHandler, FloatHandler, IntHandler, StringHandler
    from promptgen.handlers.structured import StructuredHandler

    kind = determine_type(output_type)
    if kind is HandlerType.STRING:
        return StringHandler(output_type)
    if kind is HandlerType.PRIMITIVE:
        if output_type is bool:
            return BoolHandler(output_type)
        if output_type is int:
            return IntHandler(output_type)
        return FloatHandler(output_type)
    if kind is HandlerType.JSON:
        return StructuredHandler(output_type)
    raise ConfigurationError(
        f"type {output_type!r} is not a supported output type",
        code="unsupported_type",
        details={"type": repr(output_type)},
    )
