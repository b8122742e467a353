"""Error taxonomy for calls against the content service.

The HTTP client raises these; stores catch them at the action boundary
and turn them into ``error`` strings or ``MutationResult`` values.
"""

from __future__ import annotations


class ContentServiceError(Exception):
    """Base error for content service calls."""


class NetworkFailure(ContentServiceError):
    """The request never produced an HTTP response (offline, DNS, refused)."""


class HTTPStatusError(ContentServiceError):
    """The service answered with a non-2xx status."""

    def __init__(self, status: int, message: str = "") -> None:
        self.status = status
        self.detail = message
        self.message = message or f"Request failed with status {status}"
        super().__init__(self.message)


class Unauthorized(HTTPStatusError):
    """401 from the service. Callers should prompt for sign-in, not retry."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(401, message)


class ResponseValidationError(ContentServiceError):
    """A 2xx body did not match the expected response schema."""


class PayloadValidationError(ContentServiceError):
    """An outgoing payload was rejected before any request was made."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("; ".join(errors) or "Invalid payload")


class RequestCancelled(ContentServiceError):
    """The caller's cancel token fired before the result could be used."""
