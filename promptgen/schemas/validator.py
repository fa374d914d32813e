"""JSON Schema validation for structured (pydantic) output types.

The schema comes from the model's declared field constraints; documents are
checked with jsonschema so every violated rule is reported, not just the
first one.
"""

from __future__ import annotations

import json
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Literal, Type, Union

from jsonschema import Draft202012Validator, validators
from jsonschema import ValidationError as JsonSchemaError
from pydantic import BaseModel

_REQUIRED_RE = re.compile(r"^'(.+)' is a required property$")


def _multiple_of(validator, divisor, instance, schema):
    # decimal arithmetic, so 0.3 is a multiple of 0.1
    if not validator.is_type(instance, "number"):
        return
    try:
        quotient = Decimal(str(instance)) / Decimal(str(divisor))
        failed = not quotient.is_finite() or quotient != quotient.to_integral_value()
    except InvalidOperation:
        failed = True
    if failed:
        yield JsonSchemaError(f"{instance!r} is not a multiple of {divisor}")


OutputValidator = validators.extend(Draft202012Validator, {"multipleOf": _multiple_of})


class SchemaViolation(ValueError):
    """A document broke one or more schema rules."""

    def __init__(self, violations: List[str]):
        self.violations = violations
        super().__init__("; ".join(violations))


def _forbid_extra(node: Any) -> Any:
    # objects reject unknown keys unless the model says otherwise
    if isinstance(node, dict):
        if "properties" in node and "additionalProperties" not in node:
            node["additionalProperties"] = False
        for value in node.values():
            _forbid_extra(value)
    elif isinstance(node, list):
        for item in node:
            _forbid_extra(item)
    return node


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _describe(err: JsonSchemaError) -> str:
    field = ".".join(str(p) for p in err.absolute_path)
    rule, limit = err.validator, err.validator_value

    if rule == "required":
        match = _REQUIRED_RE.match(err.message)
        name = match.group(1) if match else "property"
        return f"{field + '.' if field else ''}{name}: is required"

    if rule == "maxLength":
        text = f"String length must be less than or equal to {limit}"
    elif rule == "minLength":
        text = f"String length must be greater than or equal to {limit}"
    elif rule == "maximum":
        text = f"Must be less than or equal to {limit}"
    elif rule == "minimum":
        text = f"Must be greater than or equal to {limit}"
    elif rule == "exclusiveMaximum":
        text = f"Must be less than {limit}"
    elif rule == "exclusiveMinimum":
        text = f"Must be greater than {limit}"
    elif rule == "multipleOf":
        text = f"Must be a multiple of {limit}"
    elif rule == "enum":
        text = "Must be one of the following: " + ", ".join(json.dumps(v) for v in limit)
    elif rule == "const":
        text = f"Must be equal to {json.dumps(limit)}"
    elif rule == "maxItems":
        text = f"Array must have at most {limit} items"
    elif rule == "minItems":
        text = f"Array must have at least {limit} items"
    elif rule == "uniqueItems":
        text = "Array items must be unique"
    elif rule == "pattern":
        text = f"Does not match pattern '{limit}'"
    elif rule == "type":
        expected = limit if isinstance(limit, str) else "/".join(limit)
        text = f"Invalid type. Expected: {expected}, given: {_json_type(err.instance)}"
    else:
        text = err.message
    return f"{field or '(root)'}: {text}"


class SchemaValidator:
    def __init__(
        self,
        model: Type[BaseModel],
        mode: Literal["validation", "serialization"] = "validation",
    ) -> None:
        """mode picks the schema side: what a reply must look like, or what a decoded model dumps to."""
        self.model = model
        self.mode = mode
        self._schema: Dict[str, Any] = _forbid_extra(model.model_json_schema(mode=mode))
        OutputValidator.check_schema(self._schema)
        self._validator = OutputValidator(self._schema)

    @property
    def schema(self) -> Dict[str, Any]:
        return json.loads(json.dumps(self._schema))

    def schema_string(self) -> str:
        return json.dumps(self._schema, indent=2)

    def validate(self, data: Union[bytes, str]) -> None:
        """Check raw JSON text; raises SchemaViolation listing every broken rule."""
        try:
            document = json.loads(data)
        except json.JSONDecodeError as e:
            raise SchemaViolation([f"(root): invalid JSON: {e.msg}"]) from e
        self.validate_document(document)

    def validate_document(self, document: Any) -> None:
        errors = sorted(
            self._validator.iter_errors(document),
            key=lambda e: [str(p) for p in e.absolute_path],
        )
        if errors:
            raise SchemaViolation([_describe(e) for e in errors])
