"""Handler for pydantic model outputs exchanged as JSON."""

from __future__ import annotations

import json
import re
from typing import Any, Generic, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from promptgen.core.errors import InvalidResponseError, OutputValidationError
from promptgen.schemas.validator import SchemaValidator, SchemaViolation

M = TypeVar("M", bound=BaseModel)

# first fenced block, optionally tagged json
FENCED_JSON_RE = re.compile(r"```(?:json)?([\s\S]*?)```", re.IGNORECASE)


def extract_json(response: str) -> str:
    """Return the body of the first fenced block, or the whole reply when there is none."""
    match = FENCED_JSON_RE.search(response)
    if match:
        return match.group(1).strip()
    return response.strip()


class StructuredHandler(Generic[M]):
    def __init__(self, output_type: Type[M]) -> None:
        self.output_type = output_type
        self.validator = SchemaValidator(output_type)
        # decoded values are checked in their dumped form: computed fields in, excluded fields out
        self.dump_validator = SchemaValidator(output_type, mode="serialization")

    def schema_string(self) -> str:
        return self.validator.schema_string()

    def wrap_prompt(self, prompt: str) -> str:
        return (
            f"{prompt}\n\n"
            "Format your response according to this JSON schema, "
            "pay close attention to the validation rules in the schema:\n"
            f"{self.validator.schema_string()}\n\n"
            "Provide the result enclosed in triple backticks with 'json' on the first line.\n"
            "Don't put control characters in the wrong place or the JSON will be invalid."
        )

    def _check(self, document: Any, validator: Optional[SchemaValidator] = None) -> None:
        try:
            (validator or self.validator).validate_document(document)
        except SchemaViolation as e:
            raise OutputValidationError(str(e), details={"violations": e.violations}) from e

    def parse(self, response: str) -> M:
        body = extract_json(response)
        if not body:
            raise InvalidResponseError(
                f"no JSON found in response: {response}",
                details={"response": response},
            )
        try:
            document = json.loads(body)
        except json.JSONDecodeError as e:
            raise InvalidResponseError(
                f"failed to parse response: {e.msg}",
                code="invalid_json",
                details={"response": response},
            ) from e
        if not isinstance(document, dict):
            raise InvalidResponseError(
                f"expected a JSON object, got {type(document).__name__}",
                code="invalid_json",
                details={"response": response},
            )

        # the schema sees the raw document first so every rule violation is reported
        self._check(document)
        try:
            return self.output_type.model_validate(document)
        except PydanticValidationError as e:
            violations = [
                f"{'.'.join(str(p) for p in err['loc']) or '(root)'}: {err['msg']}"
                for err in e.errors()
            ]
            raise OutputValidationError("; ".join(violations), details={"violations": violations}) from e

    def validate(self, output: M) -> None:
        if not isinstance(output, self.output_type):
            raise OutputValidationError(
                f"expected {self.output_type.__name__} output, got {type(output).__name__}",
                code="invalid_type",
            )
        self._check(json.loads(output.model_dump_json(by_alias=True)), self.dump_validator)
