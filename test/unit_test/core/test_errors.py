import pytest

from codexalpha.core.errors import (
    AIProviderError,
    AIProviderNotConfiguredError,
    AuthenticationError,
    CodexAlphaError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitedError,
    SectionGenerationError,
    UnsupportedProviderError,
    ValidationError,
)


@pytest.mark.parametrize(
    "error_class, status_code",
    [
        (CodexAlphaError, 500),
        (ValidationError, 400),
        (AuthenticationError, 401),
        (PermissionDeniedError, 403),
        (NotFoundError, 404),
        (ConflictError, 409),
        (RateLimitedError, 429),
        (AIProviderError, 502),
        (AIProviderNotConfiguredError, 503),
        (UnsupportedProviderError, 400),
        (SectionGenerationError, 502),
    ],
)
def test_status_codes(error_class, status_code):
    error = error_class("boom")
    assert error.status_code == status_code
    assert error.message == "boom"
    assert str(error) == "boom"
    assert error.details == {}


def test_status_code_override_and_details():
    error = ValidationError("bad", status_code=422, details={"field": "title"})
    assert error.status_code == 422
    assert error.details == {"field": "title"}
    # the class default is untouched
    assert ValidationError("other").status_code == 400


def test_provider_errors_share_a_base():
    assert issubclass(AIProviderNotConfiguredError, AIProviderError)
    assert issubclass(UnsupportedProviderError, AIProviderError)
    assert issubclass(AIProviderError, CodexAlphaError)
