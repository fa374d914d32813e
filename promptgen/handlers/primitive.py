"""Handlers for plain text, integer, float and boolean replies."""

from __future__ import annotations

import math
import re
from typing import Any

from promptgen.core.errors import InvalidResponseError, OutputValidationError

# locale-free: ASCII digits, "." as the decimal separator, no grouping
_INT_RE = re.compile(r"[+-]?[0-9]+", re.ASCII)
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?", re.ASCII)

_TRUE = {"true", "yes", "1"}
_FALSE = {"false", "no", "0"}
# standard boolean literals, checked after the tokens above
_TRUE_LITERALS = {"t", "true"}
_FALSE_LITERALS = {"f", "false"}


class _Primitive:
    expected: type = object
    label = "value"

    def __init__(self, output_type: Any) -> None:
        self.output_type = output_type

    def _check_target(self) -> None:
        if self.output_type is not self.expected:
            raise InvalidResponseError(
                f"failed to convert {self.label} to output type {self.output_type!r}",
                code="invalid_type",
            )

    def validate(self, output: Any) -> None:
        # bool is an int subclass, so compare exact types
        if type(output) is not self.expected:
            raise OutputValidationError(
                f"expected {self.label} output, got {type(output).__name__}",
                code="invalid_type",
            )


class StringHandler(_Primitive):
    expected = str
    label = "string"

    def wrap_prompt(self, prompt: str) -> str:
        return (
            f"{prompt}\n\n"
            "Provide your response as plain text without any formatting or markers.\n"
            "Keep it concise and to the point."
        )

    def parse(self, response: str) -> str:
        self._check_target()
        return response.strip()

    def validate(self, output: Any) -> None:
        super().validate(output)
        if output == "":
            raise OutputValidationError("output string cannot be empty")


class IntHandler(_Primitive):
    expected = int
    label = "integer"

    def wrap_prompt(self, prompt: str) -> str:
        return (
            f"{prompt}\n\n"
            "Provide your response as a single integer number.\n"
            "Do not include any units, symbols, or additional text.\n"
            "Examples: 42, -17, 0"
        )

    def parse(self, response: str) -> int:
        self._check_target()
        cleaned = response.strip()
        if not _INT_RE.fullmatch(cleaned):
            raise InvalidResponseError(
                f"failed to parse integer from: {response!r}",
                details={"response": response},
            )
        return int(cleaned)


class FloatHandler(_Primitive):
    expected = float
    label = "float"

    def wrap_prompt(self, prompt: str) -> str:
        return (
            f"{prompt}\n\n"
            "Provide your response as a single decimal number.\n"
            "Use a period (.) as the decimal separator.\n"
            "Do not include any units, symbols, or additional text.\n"
            "Examples: 3.14, -2.5, 0.0, 42.0"
        )

    def parse(self, response: str) -> float:
        self._check_target()
        cleaned = response.strip()
        if not _FLOAT_RE.fullmatch(cleaned):
            raise InvalidResponseError(
                f"failed to parse float from: {response!r}",
                details={"response": response},
            )
        value = float(cleaned)
        if not math.isfinite(value):
            raise InvalidResponseError(
                f"float out of range: {response!r}",
                details={"response": response},
            )
        return value


class BoolHandler(_Primitive):
    expected = bool
    label = "boolean"

    def wrap_prompt(self, prompt: str) -> str:
        return (
            f"{prompt}\n\n"
            "Provide your response as a single word: true or false.\n"
            "Do not include any additional text or explanation.\n"
            "Examples: true, false"
        )

    def parse(self, response: str) -> bool:
        self._check_target()
        cleaned = response.strip().lower()
        if cleaned in _TRUE or cleaned in _TRUE_LITERALS:
            return True
        if cleaned in _FALSE or cleaned in _FALSE_LITERALS:
            return False
        raise InvalidResponseError(
            f"failed to parse boolean from: {response!r}",
            details={"response": response},
        )
