from __future__ import annotations

import dataclasses
from collections import abc
import types
import typing
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, StrictUndefined, TemplateSyntaxError
from pydantic import BaseModel

from promptgen.core.errors import ConfigurationError

_env = Environment(undefined=StrictUndefined, autoescape=False, keep_trailing_newline=True)


def _zero(annotation: Any) -> Any:
    # zero value for a field annotation, used to probe templates before first use
    origin = typing.get_origin(annotation)
    if origin in (Union, types.UnionType):
        args = typing.get_args(annotation)
        if type(None) in args:
            return None
        return _zero(args[0])
    if origin is typing.Literal:
        return typing.get_args(annotation)[0]
    if isinstance(origin, type):
        if issubclass(origin, abc.Mapping):
            return {}
        if issubclass(origin, (abc.Sequence, abc.Set)):
            return []
        return None
    if annotation in (str, int, float, bool):
        return annotation()
    if annotation in (list, set, tuple):
        return []
    if annotation is dict:
        return {}
    if isinstance(annotation, type) and (issubclass(annotation, BaseModel) or dataclasses.is_dataclass(annotation)):
        return zero_value(annotation)
    return None


def zero_value(input_type: Any) -> Any:
    """Build an instance of input_type with every field at its default or zero value."""
    if input_type is None:
        return {}
    if isinstance(input_type, type) and issubclass(input_type, BaseModel):
        values = {}
        for name, info in input_type.model_fields.items():
            if info.is_required():
                values[name] = _zero(info.annotation)
            else:
                values[name] = info.get_default(call_default_factory=True)
        return input_type.model_construct(**values)
    if dataclasses.is_dataclass(input_type):
        hints = typing.get_type_hints(input_type)
        values = {}
        for f in dataclasses.fields(input_type):
            if not f.init:
                continue
            if f.default is not dataclasses.MISSING:
                values[f.name] = f.default
            elif f.default_factory is not dataclasses.MISSING:
                values[f.name] = f.default_factory()
            else:
                values[f.name] = _zero(hints.get(f.name))
        return input_type(**values)
    return {}


def template_context(value: Any) -> Dict[str, Any]:
    """Expose an input's fields as top-level template variables."""
    if value is None:
        return {}
    if isinstance(value, BaseModel):
        return {name: getattr(value, name, None) for name in type(value).model_fields}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if isinstance(value, abc.Mapping):
        return dict(value)
    raise ConfigurationError(
        f"cannot render template with input of type {type(value).__name__}",
        code="template_error",
    )


class PromptTemplate:
    """
    Compiled prompt template.
    - "Hello {{Name}}" style references resolve against the input's fields
    - undefined names fail loudly instead of rendering as empty text
    """

    def __init__(self, source: str, input_type: Optional[type] = None) -> None:
        self.source = source
        self.input_type = input_type
        try:
            self._template = _env.from_string(source)
        except TemplateSyntaxError as e:
            raise ConfigurationError(f"invalid template: {e}", code="invalid_template") from e
        if input_type is not None:
            # fail fast: a template that cannot render a zero-valued input never will at run time either
            probe = template_context(zero_value(input_type))
            try:
                self._template.render(probe)
            except Exception as e:
                raise ConfigurationError(f"invalid template: {e}", code="invalid_template") from e

    def render(self, value: Any) -> str:
        context = template_context(value)
        try:
            return self._template.render(context)
        except Exception as e:
            raise ConfigurationError(f"failed to execute template: {e}", code="template_error") from e
