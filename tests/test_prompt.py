# tests/test_prompt.py
from dataclasses import dataclass, field
from typing import List, Optional

import pytest
from pydantic import BaseModel

from promptgen.core.errors import ConfigurationError, is_configuration
from promptgen.providers.mock import MockProvider
from promptgen.services.generator import Generator
from promptgen.services.prompt import PromptTemplate, template_context, zero_value


class Greeting(BaseModel):
    Name: str
    Message: str


class User(BaseModel):
    name: str
    age: int = 30


class Envelope(BaseModel):
    user: User
    tags: List[str]
    note: Optional[str] = None


@dataclass
class Ticket:
    title: str
    labels: List[str] = field(default_factory=list)


def test_render_fields_by_name():
    t = PromptTemplate("Hello {{Name}}, {{Message}}", Greeting)
    assert t.render(Greeting(Name="Alice", Message="how are you?")) == "Hello Alice, how are you?"


def test_syntax_error_is_configuration_error():
    with pytest.raises(ConfigurationError) as ei:
        PromptTemplate("Hello {{Name", Greeting)
    assert ei.value.code == "invalid_template"
    assert ei.value.message.startswith("invalid template:")


def test_unknown_field_fails_at_construction():
    with pytest.raises(ConfigurationError) as ei:
        PromptTemplate("Hello {{Nickname}}", Greeting)
    assert ei.value.code == "invalid_template"


def test_unknown_field_fails_at_render_without_input_type():
    t = PromptTemplate("Hello {{name}}")
    with pytest.raises(ConfigurationError) as ei:
        t.render({"other": 1})
    assert ei.value.code == "template_error"
    assert ei.value.message.startswith("failed to execute template:")


def test_nested_and_optional_fields_probe_cleanly():
    t = PromptTemplate(
        "{{user.name}} ({{user.age}}){% for tag in tags %} #{{tag}}{% endfor %}{% if note %} - {{note}}{% endif %}",
        Envelope,
    )
    out = t.render(Envelope(user=User(name="Ada"), tags=["math", "code"], note="hi"))
    assert out == "Ada (30) #math #code - hi"


def test_dataclass_and_mapping_inputs():
    t = PromptTemplate("{{title}}: {{labels|join(', ')}}", Ticket)
    assert t.render(Ticket(title="Bug", labels=["ui", "p1"])) == "Bug: ui, p1"
    assert PromptTemplate("{{a}}-{{b}}").render({"a": 1, "b": 2}) == "1-2"


def test_render_rejects_unsupported_input():
    t = PromptTemplate("static text")
    assert t.render(None) == "static text"
    with pytest.raises(ConfigurationError) as ei:
        t.render(42)
    assert ei.value.code == "template_error"


def test_zero_value_uses_defaults_and_zeros():
    env = zero_value(Envelope)
    assert env.user.name == "" and env.user.age == 30
    assert env.tags == [] and env.note is None
    assert zero_value(Ticket) == Ticket(title="", labels=[])
    assert zero_value(None) == {}


def test_template_context_from_model():
    assert template_context(User(name="Bo")) == {"name": "Bo", "age": 30}


class Counter(BaseModel):
    count: Optional[int] = None


def test_runtime_error_in_probe_is_configuration_error():
    # Python errors raised while rendering the zero-valued input classify like template errors.
    with pytest.raises(ConfigurationError) as ei:
        PromptTemplate("n={{ count + 1 }}", Counter)
    assert ei.value.code == "invalid_template"
    assert isinstance(ei.value.__cause__, TypeError)


def test_runtime_error_in_render_is_configuration_error():
    t = PromptTemplate("r={{ a / b }}")
    assert t.render({"a": 4, "b": 2}) == "r=2.0"
    with pytest.raises(ConfigurationError) as ei:
        t.render({"a": 1, "b": 0})
    assert ei.value.code == "template_error"
    assert isinstance(ei.value.__cause__, ZeroDivisionError)


@pytest.mark.asyncio
async def test_run_surfaces_render_failure_as_configuration_error():
    mock = MockProvider(response="ok")
    gen = Generator.create("r={{ a / b }}", str).with_provider(mock)
    with pytest.raises(ConfigurationError) as ei:
        await gen.run({"a": 1, "b": 0})
    assert is_configuration(ei.value)
    assert mock.prompts == []
