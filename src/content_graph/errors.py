"""Exceptions raised by the content graph client.

Shape errors and protocol violations abort the current operation. Links that
never resolve are not errors; they are reported on ``ArrayResponse.errors``.
"""

from __future__ import annotations

from typing import Any


class ContentGraphError(Exception):
    """Base class for all errors raised by this package."""


class UnparseableResponseError(ContentGraphError):
    """Raised when a response does not have the shape the decoder expects."""

    def __init__(self, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data


class LocaleHandlingError(ContentGraphError):
    """Raised when locale information needed for decoding is missing or inconsistent."""


class PreviewSyncNotSupportedError(ContentGraphError):
    """Raised when a continuation sync is requested against the preview host."""

    def __init__(self) -> None:
        super().__init__("The preview API supports only initial syncs, not continuation syncs.")


class NoResourceFoundError(ContentGraphError):
    """Raised when fetching a single resource by id returns nothing."""

    def __init__(self, resource_id: str) -> None:
        super().__init__(f"No resource found for id {resource_id!r}")
        self.resource_id = resource_id


class ApiError(ContentGraphError):
    """An error payload returned by the remote API."""

    def __init__(
        self,
        status_code: int,
        message: str,
        error_id: str | None = None,
        request_id: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(f"HTTP status code {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.error_id = error_id
        self.request_id = request_id
        self.details = details

    @classmethod
    def from_response(cls, status_code: int, body: Any, **kwargs: Any) -> ApiError:
        """Build an error from a decoded JSON error body, tolerating partial payloads."""
        if not isinstance(body, dict):
            return cls(status_code, "Request failed with a non-JSON error body", **kwargs)
        sys = body.get("sys") if isinstance(body.get("sys"), dict) else {}
        return cls(
            status_code,
            str(body.get("message") or "Request failed"),
            error_id=sys.get("id"),
            request_id=body.get("requestId"),
            details=body.get("details"),
            **kwargs,
        )

    def __str__(self) -> str:
        parts = [f"HTTP status code {self.status_code}: {self.message}"]
        if self.request_id:
            parts.append(f"Request ID: {self.request_id}")
        return "\n".join(parts)


class RateLimitError(ApiError):
    """Raised when the API rejects a request because a rate limit was hit."""

    def __init__(self, *args: Any, time_before_reset: int | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.time_before_reset = time_before_reset

    def __str__(self) -> str:
        text = super().__str__()
        if self.time_before_reset is not None:
            text += f"\nWait {self.time_before_reset} seconds before making more requests."
        return text
