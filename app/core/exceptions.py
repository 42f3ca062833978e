"""Custom exception types for domain and API layers."""
from __future__ import annotations

from typing import Any

DETAILS_LIMIT = 500


def truncate(text: str, limit: int = DETAILS_LIMIT) -> str:
    return text[:limit]


class AppError(Exception):
    """Base app exception."""


class IntegrationError(AppError):
    """External integration call failure."""


class BridgeError(IntegrationError):
    """Failure rendered by the workflow bridge as a JSON error body."""

    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        details: Any = None,
        url: str | None = None,
        method: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = truncate(details) if isinstance(details, str) else details
        self.url = url
        self.method = method

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        if self.url is not None:
            payload["url"] = self.url
        if self.method is not None:
            payload["method"] = self.method
        return payload


class ConfigurationError(BridgeError):
    """Required setting missing. Details carry presence flags, never values."""

    status_code = 500


class MalformedRequestError(BridgeError):
    """Request body is not parseable JSON (strict parsing only)."""

    status_code = 400


class InvalidActionError(BridgeError):
    """Action is missing or not one the bridge knows. 400 only under strict parsing."""

    status_code = 500


class UpstreamHttpError(BridgeError):
    """Workflow API answered with a non-success status on every attempt."""

    status_code = 502

    def __init__(self, upstream_status: int, **kwargs: Any) -> None:
        super().__init__(f"n8n API returned {upstream_status}", **kwargs)
        self.upstream_status = upstream_status


class UpstreamFormatError(BridgeError):
    """Workflow API answered with success but the body is not JSON."""

    status_code = 502

    def __init__(self, **kwargs: Any) -> None:
        super().__init__("n8n API returned non-JSON response", **kwargs)


class InternalError(BridgeError):
    """Anything unexpected, e.g. the upstream host being unreachable."""

    status_code = 500

    def __init__(self, message: str, *, error_type: str) -> None:
        super().__init__(message)
        self.error_type = error_type

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["type"] = self.error_type
        return payload

    @classmethod
    def from_exception(cls, exc: BaseException) -> "InternalError":
        message = str(exc).strip() if isinstance(exc, Exception) else ""
        return cls(message or "Unknown error", error_type=type(exc).__name__)
