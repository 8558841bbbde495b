"""
tikwifi error taxonomy.

Every error carries a machine-readable ``code`` and the HTTP status the web
layer answers with. Scan timeouts are not errors: they are reported as a
``{"status": "timeout"}`` poll result.
"""

from __future__ import annotations

from typing import Any


class TikwifiError(Exception):
    """Base class for all tikwifi errors."""

    code = "error"
    http_status = 500

    def __init__(self, message: str = "", code: str | None = None, http_status: int | None = None) -> None:
        super().__init__(message or self.__class__.__name__)
        if code:
            self.code = code
        if http_status:
            self.http_status = http_status

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": str(self)}


class ApiError(TikwifiError):
    """Router unreachable, timed out or refused the request.

    Timeouts and connection failures share this type.
    """

    code = "request_failed"
    http_status = 502

    def __init__(self, message: str = "", reason: str = "request_failed", http_status: int | None = None) -> None:
        super().__init__(message or reason, code=reason, http_status=http_status)
        self.reason = reason


class ParseError(TikwifiError):
    """The router answered with something that is not the expected JSON."""

    code = "invalid_router_response"
    http_status = 502


class NotFoundError(TikwifiError):
    """Configured interface or managed profile is absent on the router."""

    code = "not_found"
    http_status = 404


class RequestValidationError(TikwifiError):
    """Caller input rejected before any remote call."""

    code = "invalid_request"
    http_status = 400


class StorageUnavailableError(TikwifiError):
    """The temporary scan volume could not be provided."""

    code = "tmpfs_unavailable"
    http_status = 500
