"""Custom exceptions for the registry client.

Callers are expected to branch on these types ("is this a not-found or a
transient failure?") rather than inspect raw status codes.
"""

from typing import Any, Iterable, Mapping, Optional

import httpx


class RegistryError(Exception):
    """Base class for registry client exceptions.

    All custom exceptions inherit from this class. ``status_code`` is the
    HTTP status the error corresponds to, or 0 when no response was involved.
    """
    status_code: int = 0

    def __init__(self, message: str = "Registry error"):
        self.message = message
        super().__init__(message)


class ValidationError(RegistryError):
    """Raised when an input field is missing or malformed.

    Raised before any request is issued.
    """

    def __init__(self, field: str = "", message: str = "invalid input", value: Any = None):
        self.field = field
        self.value = value
        if field:
            text = f"validation error for field '{field}': {message}"
        else:
            text = f"validation error: {message}"
        super().__init__(text)
        self.reason = message


class MultiError(RegistryError):
    """Aggregate of several validation failures for one composite input."""

    def __init__(self, errors: Optional[Iterable[Exception]] = None):
        self.errors: list[Exception] = [e for e in (errors or []) if e is not None]
        super().__init__(self._render())

    def _render(self) -> str:
        if len(self.errors) == 1:
            return str(self.errors[0])
        return f"multiple errors occurred ({len(self.errors)} errors)"

    def __str__(self) -> str:
        return self._render()

    def add(self, error: Optional[Exception]) -> None:
        if error is not None:
            self.errors.append(error)
            self.message = self._render()

    def has_errors(self) -> bool:
        return bool(self.errors)

    def error_or_none(self) -> Optional[Exception]:
        """Collapse the aggregate: None, the single inner error, or self."""
        if not self.errors:
            return None
        if len(self.errors) == 1:
            return self.errors[0]
        return self


class RequestCancelledError(RegistryError):
    """Raised when the caller's cancellation signal is observed."""

    def __init__(self, detail: str = "request cancelled"):
        super().__init__(detail)


class APIError(RegistryError):
    """Raised for a non-success response from the registry API."""
    status_code = 0

    def __init__(
        self,
        message: str = "API error",
        status_code: Optional[int] = None,
        code: str = "",
        headers: Optional[Mapping[str, str]] = None,
    ):
        if status_code is not None:
            self.status_code = status_code
        self.code = code
        self.headers = dict(headers or {})
        if code:
            text = f"API error (status {self.status_code}, code {code}): {message}"
        else:
            text = f"API error (status {self.status_code}): {message}"
        super().__init__(text)
        self.detail = message


class NotFoundError(APIError):
    """Maps to HTTP 404 Not Found."""
    status_code = 404


class UnauthorizedError(APIError):
    """Maps to HTTP 401 Unauthorized."""
    status_code = 401


class ForbiddenError(APIError):
    """Maps to HTTP 403 Forbidden."""
    status_code = 403


class RateLimitedError(APIError):
    """Maps to HTTP 429 Too Many Requests."""
    status_code = 429


class ServerError(APIError):
    """Terminal 5xx response, raised once the retry budget is spent."""
    status_code = 500

    def __init__(self, *args: Any, attempts: int = 1, **kwargs: Any):
        self.attempts = attempts
        super().__init__(*args, **kwargs)


class NetworkError(RegistryError):
    """Raised when a request fails below the HTTP layer."""

    def __init__(self, method: str, url: str, cause: Exception):
        self.method = method
        self.url = url
        self.cause = cause
        super().__init__(f"request error ({method} {url}): {cause}")


class RetryExhaustedError(RegistryError):
    """Raised when every allowed attempt failed with a retryable error.

    Attributes:
        attempts: Number of attempts made
        last_error: The classified error of the final attempt
    """

    def __init__(self, attempts: int, last_error: Exception):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"giving up after {attempts} attempts: {last_error}")


class ResponseDecodeError(RegistryError):
    """Raised when a success response cannot be decoded."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        super().__init__(f"response error (status {status_code}): {detail}")


_STATUS_ERRORS: dict[int, type[APIError]] = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    429: RateLimitedError,
}


def _extract_message(response: httpx.Response) -> tuple[str, str]:
    message = response.text
    code = ""
    try:
        body = response.json()
    except ValueError:
        return message, code
    if isinstance(body, dict):
        if body.get("message"):
            message = str(body["message"])
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            if isinstance(first, dict):
                message = str(first.get("message") or first.get("detail") or message)
                code = str(first.get("code") or "")
            else:
                message = str(first)
    return message, code


def api_error_from_response(response: httpx.Response, attempts: int = 1) -> APIError:
    """Build the typed error for a non-success response."""
    message, code = _extract_message(response)
    status = response.status_code
    if status >= 500:
        return ServerError(
            message, status_code=status, code=code, headers=response.headers, attempts=attempts
        )
    error_cls = _STATUS_ERRORS.get(status, APIError)
    return error_cls(message, status_code=status, code=code, headers=response.headers)
