"""Tests for the error taxonomy and response mapping."""

import httpx
import pytest

from registry_client.exceptions import (
    APIError,
    ForbiddenError,
    MultiError,
    NotFoundError,
    RateLimitedError,
    RegistryError,
    ServerError,
    UnauthorizedError,
    ValidationError,
    api_error_from_response,
)


class TestValidationError:
    def test_message_names_field(self):
        error = ValidationError("namespace", "namespace cannot be empty", value="")

        assert str(error) == "validation error for field 'namespace': namespace cannot be empty"
        assert error.reason == "namespace cannot be empty"
        assert isinstance(error, RegistryError)

    def test_without_field(self):
        assert str(ValidationError(message="bad")) == "validation error: bad"


class TestMultiError:
    def test_empty_collapses_to_none(self):
        errs = MultiError()
        assert not errs.has_errors()
        assert errs.error_or_none() is None

    def test_single_error_unwrapped(self):
        inner = ValidationError("name", "bad")
        errs = MultiError()
        errs.add(None)
        errs.add(inner)

        assert errs.error_or_none() is inner
        assert str(errs) == str(inner)

    def test_many_errors(self):
        errs = MultiError([ValidationError("a", "x"), ValidationError("b", "y")])

        assert errs.error_or_none() is errs
        assert str(errs) == "multiple errors occurred (2 errors)"


class TestApiErrorFromResponse:
    """Test status code mapping."""

    @pytest.mark.parametrize(
        ("status", "error_cls"),
        [
            (401, UnauthorizedError),
            (403, ForbiddenError),
            (404, NotFoundError),
            (429, RateLimitedError),
            (500, ServerError),
            (503, ServerError),
            (400, APIError),
            (422, APIError),
        ],
    )
    def test_maps_status(self, status, error_cls):
        error = api_error_from_response(httpx.Response(status))

        assert type(error) is error_cls
        assert error.status_code == status

    def test_message_field(self):
        error = api_error_from_response(httpx.Response(404, json={"message": "module missing"}))
        assert error.detail == "module missing"
        assert "module missing" in str(error)

    def test_jsonapi_errors(self):
        response = httpx.Response(
            400, json={"errors": [{"code": "invalid", "detail": "bad filter"}]}
        )

        error = api_error_from_response(response)

        assert error.detail == "bad filter"
        assert error.code == "invalid"

    def test_plain_text_body(self):
        error = api_error_from_response(httpx.Response(502, text="Bad Gateway"), attempts=4)

        assert error.detail == "Bad Gateway"
        assert error.attempts == 4

    def test_headers_kept(self):
        response = httpx.Response(429, headers={"Retry-After": "3"})
        assert api_error_from_response(response).headers["retry-after"] == "3"
