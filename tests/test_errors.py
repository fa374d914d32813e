# tests/test_errors.py
import pytest

from promptgen.core.errors import (
    CanceledError,
    ConfigurationError,
    ContextLengthError,
    ErrorKind,
    GenerationTimeoutError,
    HookError,
    InvalidResponseError,
    NoProviderError,
    OutputValidationError,
    PromptGenError,
    RateLimitError,
    error_kind,
    is_canceled,
    is_configuration,
    is_context_length,
    is_invalid_response,
    is_no_provider,
    is_rate_limit,
    is_timeout,
    is_validation,
)


def test_str_and_dict():
    err = OutputValidationError("test message", code="test_code", details={"key": "value"})
    assert str(err) == "test_code: test message"
    assert err.to_dict() == {
        "error": "test_code",
        "kind": "validation",
        "message": "test message",
        "details": {"key": "value"},
    }


def test_default_codes():
    assert NoProviderError("x").code == "no_provider"
    assert ConfigurationError("x").code == "config_error"
    assert InvalidResponseError("x").code == "invalid_format"
    assert GenerationTimeoutError("x").code == "timeout"
    assert HookError("x").code == "hook_error"


@pytest.mark.parametrize(
    "err, check, expected",
    [
        (OutputValidationError("v"), is_validation, True),
        (GenerationTimeoutError("t"), is_validation, False),
        (GenerationTimeoutError("t"), is_timeout, True),
        (OutputValidationError("v"), is_timeout, False),
        (RateLimitError("r"), is_rate_limit, True),
        (ContextLengthError("c"), is_context_length, True),
        (RateLimitError("r"), is_context_length, False),
        (NoProviderError("n"), is_no_provider, True),
        (ConfigurationError("c"), is_configuration, True),
        (InvalidResponseError("i"), is_invalid_response, True),
        (CanceledError("c"), is_canceled, True),
        (CanceledError("c"), is_timeout, False),
        (ValueError("plain"), is_validation, False),
        (None, is_timeout, False),
    ],
)
def test_predicates(err, check, expected):
    assert check(err) is expected


def test_predicates_follow_cause_chain():
    # a hook wrapping a typed error still classifies by the inner kind
    inner = RateLimitError("slow down")
    try:
        try:
            raise inner
        except RateLimitError as e:
            raise HookError("hook failed") from e
    except HookError as outer:
        wrapped = outer

    assert wrapped.kind is None
    assert is_rate_limit(wrapped)
    assert error_kind(wrapped) is ErrorKind.RATE_LIMIT


def test_deeply_wrapped_generic_errors():
    base = GenerationTimeoutError("deadline")
    middle = RuntimeError("middle")
    middle.__cause__ = base
    top = ValueError("top")
    top.__cause__ = middle
    assert is_timeout(top)
    assert not is_validation(top)


def test_all_typed_errors_share_base():
    for cls in (NoProviderError, ConfigurationError, InvalidResponseError, OutputValidationError,
                GenerationTimeoutError, CanceledError, RateLimitError, ContextLengthError, HookError):
        assert issubclass(cls, PromptGenError)
